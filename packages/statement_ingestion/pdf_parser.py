"""
PDF Statement Parser - line matching over extracted statement text.

Layout analysis is left to pdfplumber; this module only recognises
transaction-shaped lines in the resulting text.
"""

import io
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

import pdfplumber

from .amounts import parse_amount
from .models import ParseResult, RawTransaction

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_ERROR = (
    "No transactions detected in the PDF. "
    "The format of your bank statement may not be supported."
)
DEFAULT_MAX_PAGES = 100

# Thousands groups are exactly three digits so a number ending the
# description is not read as part of the amount.
_DIGITS = r"(?:\d{1,3}(?:[\s.]\d{3})+|\d+)"
_AMOUNT = rf"-?\s*{_DIGITS}[.,]\d{{2}}"
_UNSIGNED_AMOUNT = rf"{_DIGITS}[.,]\d{{2}}"
_FULL_DATE = r"\d{2}[/.-]\d{2}[/.-]\d{2,4}"
_SHORT_DATE = r"\d{2}[/.-]\d{2}"

# Tried in order; the first match wins.
TRANSACTION_PATTERNS = [
    # DD/MM/YYYY description amount
    re.compile(rf"^({_FULL_DATE})\s+(.+?)\s+({_AMOUNT})\s*$"),
    # DD/MM description amount (year implied)
    re.compile(rf"^({_SHORT_DATE})\s+(.+?)\s+({_AMOUNT})\s*$"),
    # DD/MM/YYYY description debit credit
    re.compile(
        rf"^({_FULL_DATE})\s+(.+?)\s+({_UNSIGNED_AMOUNT})?\s+({_UNSIGNED_AMOUNT})?\s*$"
    ),
]

_YEAR_IN_DATE = re.compile(r"\b\d{2}[/.-]\d{2}[/.-](\d{4})\b")
_MIN_LINE_LENGTH = 10


@dataclass
class PdfText:
    page_count: int
    text: str


def extract_pdf_text(content: bytes, max_pages: int = DEFAULT_MAX_PAGES) -> PdfText:
    """Extract the text of every page with pdfplumber.

    Raises:
        ValueError: if the document has more than ``max_pages`` pages
    """
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        page_count = len(pdf.pages)
        if page_count > max_pages:
            raise ValueError(f"PDF has {page_count} pages (limit {max_pages})")
        pages = [page.extract_text() or "" for page in pdf.pages]
    return PdfText(page_count=page_count, text="\n".join(pages))


def parse_transaction_line(line: str) -> Optional[RawTransaction]:
    """Match one text line against the known statement line shapes."""
    trimmed = line.strip()
    if len(trimmed) < _MIN_LINE_LENGTH:
        return None

    for pattern in TRANSACTION_PATTERNS:
        match = pattern.match(trimmed)
        if not match:
            continue

        groups = match.groups()
        date = groups[0]
        description = (groups[1] or "").strip()
        if not date or not description:
            continue

        if len(groups) == 3:
            return RawTransaction(date=date, description=description, amount=parse_amount(groups[2]))

        debit, credit = groups[2], groups[3]
        if debit or credit:
            amount = parse_amount(credit) - parse_amount(debit)
            return RawTransaction(date=date, description=description, amount=amount)

    return None


def _complete_year(date: str, year: Optional[str]) -> str:
    if year and not re.fullmatch(_FULL_DATE, date):
        return f"{date[:5]}/{year}"
    return date


def parse_pdf_text(text: str) -> List[RawTransaction]:
    """Collect every transaction line; unmatched lines are ignored."""
    first_year = _YEAR_IN_DATE.search(text)
    year = first_year.group(1) if first_year else None

    transactions = []
    for line in text.split("\n"):
        seen = _YEAR_IN_DATE.search(line)
        if seen:
            year = seen.group(1)
        tx = parse_transaction_line(line)
        if tx:
            tx.date = _complete_year(tx.date, year)
            transactions.append(tx)
    return transactions


def parse_pdf(
    content: bytes,
    max_pages: int = DEFAULT_MAX_PAGES,
    extract_text: Callable[..., PdfText] = extract_pdf_text,
) -> ParseResult:
    """
    Parse a PDF bank statement.

    Args:
        content: Raw PDF bytes
        max_pages: Page ceiling; larger documents are refused
        extract_text: Text extraction collaborator (pdfplumber by default)

    Returns:
        ParseResult labelled "PDF (N pages)"
    """
    try:
        extracted = extract_text(content, max_pages=max_pages)
    except Exception as e:
        logger.warning(f"PDF text extraction failed: {e}")
        return ParseResult(errors=[f"Could not read the PDF: {e}"], metadata={"page_count": 0})

    transactions = parse_pdf_text(extracted.text)
    errors = [] if transactions else [NO_TRANSACTIONS_ERROR]
    logger.info(f"Parsed {len(transactions)} PDF transactions from {extracted.page_count} pages")

    return ParseResult(
        transactions=transactions,
        errors=errors,
        format_label=f"PDF ({extracted.page_count} pages)",
        metadata={"page_count": extracted.page_count},
    )
