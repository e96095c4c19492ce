"""
CSV Statement Parser - bank exports from French retail banks and neobanks.

Supports: BNP Paribas, Crédit Agricole, Société Générale, Boursorama, N26,
          and a generic column guesser for anything else.
Features: Delimiter sniffing, header-based format detection,
          French amount notation, debit/credit column pairs.
"""

import io
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from .amounts import parse_amount
from .models import ParseResult, RawTransaction

logger = logging.getLogger(__name__)

GENERIC_FORMAT = "generic format"
EMPTY_FILE_ERROR = "CSV file is empty or its format is not recognised"


class CsvRow:
    """Case-insensitive view over one CSV record keyed by trimmed header."""

    def __init__(self, values: Dict[str, str]):
        self.values = values
        self._by_lower = {}
        for key, value in values.items():
            self._by_lower.setdefault(key.lower().strip(), value)

    def get(self, *names: str) -> str:
        """Return the first non-blank cell among ``names``, else ``""``."""
        for name in names:
            value = self._by_lower.get(name.lower())
            if value is not None and str(value).strip():
                return str(value).strip()
        return ""

    def keys(self) -> List[str]:
        return list(self.values.keys())


@dataclass(frozen=True)
class BankFormat:
    name: str
    detect: Callable[[Sequence[str]], bool]
    parse: Callable[[CsvRow], Optional[RawTransaction]]


def _build(date: str, description: str, amount: Decimal) -> Optional[RawTransaction]:
    if not date or not description:
        return None
    return RawTransaction(date=date, description=description, amount=amount)


def _debit_credit(row: CsvRow) -> Decimal:
    credit = row.get("Crédit", "Credit")
    debit = row.get("Débit", "Debit")
    return parse_amount(credit) - parse_amount(debit)


# BNP Paribas
def _detect_bnp(h: Sequence[str]) -> bool:
    return (
        "date opération" in h
        or "date operation" in h
        or ("date" in h and "libellé" in h and "débit" in h)
    )


def _parse_bnp(row: CsvRow) -> Optional[RawTransaction]:
    return _build(
        row.get("Date opération", "Date operation", "Date"),
        row.get("Libellé", "Libelle", "Libellé simplifié"),
        _debit_credit(row),
    )


# Crédit Agricole
def _detect_credit_agricole(h: Sequence[str]) -> bool:
    return "date" in h and "libellé" in h and "montant" in h and "débit" not in h


def _parse_credit_agricole(row: CsvRow) -> Optional[RawTransaction]:
    return _build(
        row.get("Date"),
        row.get("Libellé", "Libelle"),
        parse_amount(row.get("Montant")),
    )


# Société Générale
def _detect_societe_generale(h: Sequence[str]) -> bool:
    return "date de l'opération" in h or ("date" in h and "détail de l'opération" in h)


def _parse_societe_generale(row: CsvRow) -> Optional[RawTransaction]:
    montant = row.get("Montant")
    amount = parse_amount(montant) if montant else _debit_credit(row)
    return _build(
        row.get("Date de l'opération", "Date"),
        row.get("Détail de l'opération", "Libellé", "Libelle"),
        amount,
    )


# Boursorama
def _detect_boursorama(h: Sequence[str]) -> bool:
    return "dateop" in h or ("date" in h and "label" in h and "amount" in h)


def _parse_boursorama(row: CsvRow) -> Optional[RawTransaction]:
    return _build(
        row.get("dateOp", "Date"),
        row.get("label", "Libellé"),
        parse_amount(row.get("amount", "Montant")),
    )


# N26
def _detect_n26(h: Sequence[str]) -> bool:
    return "date" in h and "payee" in h and "amount (eur)" in h


def _parse_n26(row: CsvRow) -> Optional[RawTransaction]:
    return _build(
        row.get("Date"),
        row.get("Payee", "Payment reference"),
        parse_amount(row.get("Amount (EUR)")),
    )


# Detection order matters: the first matching format wins.
BANK_FORMATS: List[BankFormat] = [
    BankFormat("BNP Paribas", _detect_bnp, _parse_bnp),
    BankFormat("Crédit Agricole", _detect_credit_agricole, _parse_credit_agricole),
    BankFormat("Société Générale", _detect_societe_generale, _parse_societe_generale),
    BankFormat("Boursorama", _detect_boursorama, _parse_boursorama),
    BankFormat("N26", _detect_n26, _parse_n26),
]

DESCRIPTION_TOKENS = ("libellé", "libelle", "description", "label", "payee")
AMOUNT_TOKENS = ("montant", "amount", "somme")


def _first_key(keys: List[str], tokens: Sequence[str]) -> Optional[str]:
    for key in keys:
        lower = key.lower()
        if any(token in lower for token in tokens):
            return key
    return None


def parse_generic_row(row: CsvRow) -> Optional[RawTransaction]:
    """Guess the date, description and amount columns of an unknown layout."""
    keys = row.keys()
    date_key = _first_key(keys, ("date",)) or (keys[0] if keys else None)
    desc_key = _first_key(keys, DESCRIPTION_TOKENS) or (keys[1] if len(keys) > 1 else None)
    amount_key = _first_key(keys, AMOUNT_TOKENS)
    debit_key = _first_key(keys, ("débit", "debit"))
    credit_key = _first_key(keys, ("crédit", "credit"))

    if not date_key or not desc_key:
        return None

    if amount_key and row.get(amount_key):
        amount = parse_amount(row.get(amount_key))
    elif debit_key or credit_key:
        credit = row.get(credit_key) if credit_key else ""
        debit = row.get(debit_key) if debit_key else ""
        amount = parse_amount(credit) - parse_amount(debit)
    else:
        # Third column as a last resort
        amount = parse_amount(row.get(keys[2])) if len(keys) > 2 else Decimal("0")

    return _build(row.get(date_key), row.get(desc_key), amount)


def detect_delimiter(content: str) -> str:
    """Pick ``;``, tab or ``,`` by counting occurrences in the first line."""
    first_line = content.split("\n", 1)[0]
    semicolons = first_line.count(";")
    commas = first_line.count(",")
    tabs = first_line.count("\t")

    if semicolons > commas and semicolons > tabs:
        return ";"
    if tabs > commas:
        return "\t"
    return ","


def detect_bank_format(headers: Sequence[str]) -> Optional[BankFormat]:
    """Return the first known layout whose detector accepts ``headers``."""
    normalized = [str(h).lower().strip() for h in headers]
    for bank_format in BANK_FORMATS:
        if bank_format.detect(normalized):
            return bank_format
    return None


def _read_table(content: str, delimiter: str, errors: List[str]) -> pd.DataFrame:
    def on_bad_line(fields: List[str]) -> None:
        errors.append(f"Malformed row skipped ({len(fields)} fields): {delimiter.join(fields)[:80]}")
        return None

    df = pd.read_csv(
        io.StringIO(content),
        sep=delimiter,
        index_col=False,  # trailing delimiters on data rows must not shift columns
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        on_bad_lines=on_bad_line,
    )
    df.columns = [str(c).strip() for c in df.columns]
    return df.fillna("")


def parse_csv(content: str, delimiter: Optional[str] = None) -> ParseResult:
    """
    Parse a CSV bank export.

    Args:
        content: Decoded file text
        delimiter: Explicit delimiter; sniffed from the header line when omitted

    Returns:
        ParseResult with the matched format's display name as label
    """
    errors: List[str] = []
    delimiter = delimiter or detect_delimiter(content)

    try:
        df = _read_table(content, delimiter, errors)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logger.warning(f"Unreadable CSV: {e}")
        return ParseResult(errors=[EMPTY_FILE_ERROR])

    headers = [c for c in df.columns if c]
    if df.empty or len(headers) < 2:
        return ParseResult(errors=errors + [EMPTY_FILE_ERROR])

    bank_format = detect_bank_format(headers)
    parse_row = bank_format.parse if bank_format else parse_generic_row
    label = bank_format.name if bank_format else GENERIC_FORMAT
    logger.info(f"Detected CSV format: {label} ({len(df)} rows, delimiter {delimiter!r})")

    transactions: List[RawTransaction] = []
    for idx, record in enumerate(df.to_dict("records")):
        line = idx + 2  # header is line 1
        try:
            tx = parse_row(CsvRow(record))
        except Exception as e:
            logger.warning(f"Error parsing row {line}: {e}")
            errors.append(f"Line {line}: parse error")
            continue

        if tx is None:
            errors.append(f"Line {line}: missing date or description")
            continue
        transactions.append(tx)

    return ParseResult(transactions=transactions, errors=errors, format_label=label)
