"""
Transaction Normalizer - raw statement lines to canonical transactions.

Parses locale-dependent dates, strips card/payment boilerplate from
descriptions, detects merchants and categories from ordered lookup
tables, and converts amounts to integer cents.
"""

import logging
import re
from datetime import date
from typing import Iterable, List, Optional

import pandas as pd

from .amounts import to_minor_units
from .merchant_tables import DEFAULT_TABLES, MerchantTables
from .models import NormalizedTransaction, RawTransaction

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "EUR"

_DAY_FIRST_DATE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2,4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

# Applied in order.
_DESCRIPTION_RULES = [
    (re.compile(r"\s+"), " "),
    (re.compile(r"\*+"), " "),
    (re.compile(r"\d{2}/\d{2}/?\d{0,4}"), ""),
    (re.compile(r"\bX+\d{4}\b", re.IGNORECASE), ""),  # card mask
    (re.compile(r"^\s*PAIEMENT\s+(?:PAR\s+)?(?:CB|CARTE)(?=\s|\d|$)\s*\d*", re.IGNORECASE), ""),
    (re.compile(r"\b(?:CB|CARTE)\s*\d+", re.IGNORECASE), ""),
    (re.compile(r"^\s*(?:PRELEVEMENT|PRLV)\b\s*(?:SEPA\b)?\s*", re.IGNORECASE), ""),
    (re.compile(r"^\s*VIREMENT\b\s*(?:(?:DE|POUR|SEPA)\b)?\s*", re.IGNORECASE), ""),
    (re.compile(r"\s{2,}"), " "),
]


def clean_description(description: str) -> str:
    """Strip payment boilerplate, embedded dates and card numbers."""
    cleaned = description
    for pattern, replacement in _DESCRIPTION_RULES:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned.strip()


def parse_date(value: str) -> Optional[date]:
    """Parse a statement date.

    Tries day-first ``DD/MM/YYYY`` (``/``, ``.`` or ``-``; two-digit years
    are 20xx), then ISO ``YYYY-MM-DD`` prefixes, then pandas' own parser.
    """
    text = (value or "").strip()
    if not text:
        return None

    match = _DAY_FIRST_DATE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000
        try:
            return date(year, month, day)
        except ValueError:
            pass

    match = _ISO_DATE.match(text)
    if match:
        try:
            return date(*(int(g) for g in match.groups()))
        except ValueError:
            pass

    try:
        parsed = pd.to_datetime(text, dayfirst=True, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


class TransactionNormalizer:
    """Turns RawTransaction records into NormalizedTransaction records.

    The lookup tables are injected so they can be swapped per locale.
    """

    def __init__(
        self,
        tables: MerchantTables = DEFAULT_TABLES,
        default_currency: str = DEFAULT_CURRENCY,
    ):
        self.tables = tables
        self.default_currency = default_currency

    def detect_merchant(self, description: str) -> Optional[str]:
        lower = description.lower()
        for pattern, name in self.tables.merchants:
            if pattern in lower:
                return name
        return None

    def detect_category(self, description: str) -> Optional[str]:
        lower = description.lower()
        for pattern, _ in self.tables.merchants:
            if pattern in lower:
                return self.tables.subscription_category

        for category, patterns in self.tables.categories:
            if any(p.search(description) for p in patterns):
                return category
        return None

    def normalize(self, raw: RawTransaction) -> Optional[NormalizedTransaction]:
        """Normalize one record; ``None`` when its date cannot be read."""
        tx_date = parse_date(raw.date)
        if tx_date is None:
            return None

        cleaned = clean_description(raw.description)
        merchant = self.detect_merchant(raw.description) or self.detect_merchant(cleaned)
        category = (
            raw.category
            or self.detect_category(raw.description)
            or self.detect_category(cleaned)
        )

        return NormalizedTransaction(
            date=tx_date,
            description=cleaned or raw.description,
            raw_description=raw.description,
            amount=to_minor_units(raw.amount),
            currency=raw.currency or self.default_currency,
            category=category,
            merchant_name=merchant,
            is_recurring=category == self.tables.subscription_category or merchant is not None,
        )

    def normalize_all(self, raws: Iterable[RawTransaction]) -> List[NormalizedTransaction]:
        """Normalize a batch, silently dropping records with unreadable dates."""
        normalized = []
        dropped = 0
        for raw in raws:
            tx = self.normalize(raw)
            if tx is None:
                dropped += 1
                logger.debug(f"Dropped transaction with unreadable date {raw.date!r}")
                continue
            normalized.append(tx)

        if dropped:
            logger.info(f"Normalized {len(normalized)} transactions, dropped {dropped}")
        return normalized
