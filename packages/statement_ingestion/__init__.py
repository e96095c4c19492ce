"""
Statement Ingestion

Bank statement parsing (CSV, OFX/QIF, PDF) and transaction normalization.
"""

__version__ = "0.1.0"

from .loader import UnsupportedFormatError, parse_statement
from .merchant_tables import DEFAULT_TABLES, MerchantTables
from .models import NormalizedTransaction, ParseResult, RawTransaction
from .normalizer import TransactionNormalizer

__all__ = [
    "parse_statement",
    "UnsupportedFormatError",
    "ParseResult",
    "RawTransaction",
    "NormalizedTransaction",
    "TransactionNormalizer",
    "MerchantTables",
    "DEFAULT_TABLES",
]
