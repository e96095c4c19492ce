"""
OFX / QIF Statement Parser.

OFX 1.x (SGML) and 2.x (XML) are read with tag lookups rather than a
full document parser: SGML exports routinely omit closing tags for leaf
elements, so ``<TAG>value`` up to the next ``<`` or line break is the
only reliable shape. QIF exports are line-oriented records.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from .models import ParseResult, RawTransaction

logger = logging.getLogger(__name__)

OFX_NOT_RECOGNISED = "OFX format not recognised: <OFX> tag not found"
QIF_NOT_RECOGNISED = "QIF format not recognised: no transaction records found"
UNKNOWN_DESCRIPTION = "Unknown transaction"
DEFAULT_CURRENCY = "EUR"

_OFX_START = re.compile(r"<OFX>", re.IGNORECASE)
_STMTTRN = re.compile(r"<STMTTRN>(.*?)</STMTTRN>", re.IGNORECASE | re.DOTALL)
_OFX_DATE = re.compile(r"^(\d{4})(\d{2})(\d{2})")


def extract_tag(document: str, tag: str) -> Optional[str]:
    """Return the trimmed value of the first ``<tag>`` in ``document``."""
    match = re.search(rf"<{tag}>([^<\n]+)", document, re.IGNORECASE)
    return match.group(1).strip() if match else None


def extract_blocks(document: str) -> List[str]:
    return [m.group(1) for m in _STMTTRN.finditer(document)]


def parse_ofx_date(value: str) -> Optional[str]:
    """Reduce ``YYYYMMDD[hhmmss[.xxx]][tz]`` to an ISO calendar date string."""
    clean = re.sub(r"\[.*\]", "", value).strip()
    match = _OFX_DATE.match(clean)
    if not match:
        return None
    year, month, day = match.groups()
    return f"{year}-{month}-{day}"


def _parse_signed_amount(value: str) -> Optional[Decimal]:
    # TRNAMT is already signed; some French banks use a decimal comma.
    cleaned = value.strip().replace(" ", "").replace(",", ".")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def parse_ofx(content: str) -> ParseResult:
    """
    Parse an OFX statement.

    Returns:
        ParseResult labelled with the bank id (or "OFX"); account details
        are in ``metadata["account"]``.
    """
    start = _OFX_START.search(content)
    if not start:
        return ParseResult(errors=[OFX_NOT_RECOGNISED])
    document = content[start.start():]

    currency = extract_tag(document, "CURDEF")
    account: Dict[str, Optional[str]] = {
        "bank_id": extract_tag(document, "BANKID"),
        "account_id": extract_tag(document, "ACCTID"),
        "account_type": extract_tag(document, "ACCTTYPE"),
        "currency": currency,
    }

    transactions: List[RawTransaction] = []
    errors: List[str] = []

    for i, block in enumerate(extract_blocks(document), start=1):
        posted = extract_tag(block, "DTPOSTED")
        raw_amount = extract_tag(block, "TRNAMT")
        if not posted or not raw_amount:
            errors.append(f"Transaction {i}: missing posting date or amount")
            continue

        date = parse_ofx_date(posted)
        if date is None:
            errors.append(f'Transaction {i}: invalid date "{posted}"')
            continue

        amount = _parse_signed_amount(raw_amount)
        if amount is None:
            errors.append(f'Transaction {i}: invalid amount "{raw_amount}"')
            continue

        description = (
            extract_tag(block, "NAME") or extract_tag(block, "MEMO") or UNKNOWN_DESCRIPTION
        )
        transactions.append(
            RawTransaction(
                date=date,
                description=description,
                amount=amount,
                currency=currency or DEFAULT_CURRENCY,
            )
        )

    logger.info(f"Parsed {len(transactions)} OFX transactions ({len(errors)} skipped)")
    return ParseResult(
        transactions=transactions,
        errors=errors,
        format_label=account["bank_id"] or "OFX",
        metadata={"account": account},
    )


def _parse_qif_amount(value: str) -> Optional[Decimal]:
    cleaned = value.strip().replace(" ", "")
    if "," in cleaned and "." in cleaned:
        cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def is_qif(content: str) -> bool:
    return content.lstrip().upper().startswith("!TYPE")


def parse_qif(content: str) -> ParseResult:
    """
    Parse a QIF export.

    Each record is a run of ``<code><value>`` lines closed by ``^``:
    D (date), T/U (amount), P (payee), M (memo).
    """
    transactions: List[RawTransaction] = []
    errors: List[str] = []
    record: Dict[str, str] = {}
    index = 0

    def flush() -> None:
        nonlocal index
        if not record:
            return
        index += 1
        date = record.get("D", "").replace("'", "/").strip()
        raw_amount = record.get("T") or record.get("U") or ""
        amount = _parse_qif_amount(raw_amount) if raw_amount else None
        if not date or amount is None:
            errors.append(f"Transaction {index}: missing date or amount")
        else:
            description = record.get("P") or record.get("M") or UNKNOWN_DESCRIPTION
            transactions.append(RawTransaction(date=date, description=description, amount=amount))
        record.clear()

    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("!"):
            continue
        if line.startswith("^"):
            flush()
            continue
        record.setdefault(line[0].upper(), line[1:].strip())
    flush()

    if not transactions and not errors:
        errors.append(QIF_NOT_RECOGNISED)

    logger.info(f"Parsed {len(transactions)} QIF transactions ({len(errors)} skipped)")
    return ParseResult(transactions=transactions, errors=errors, format_label="QIF")
