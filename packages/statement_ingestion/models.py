"""Transaction records shared by the statement parsers and the normalizer."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional


@dataclass
class RawTransaction:
    """One statement line as read by a parser, before normalization."""

    date: str
    description: str
    amount: Decimal  # major units, signed (negative = debit)
    currency: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class NormalizedTransaction:
    """Canonical transaction record produced by the normalizer."""

    date: date
    description: str
    raw_description: str
    amount: int  # minor units (cents), signed
    currency: str
    category: Optional[str]
    merchant_name: Optional[str]
    is_recurring: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "raw_description": self.raw_description,
            "amount": self.amount,
            "currency": self.currency,
            "category": self.category,
            "merchant_name": self.merchant_name,
            "is_recurring": self.is_recurring,
        }


@dataclass
class ParseResult:
    """Output of every parser: partial success plus diagnostics.

    An empty ``transactions`` list is a normal result meaning "nothing
    importable"; ``errors`` then explains why.
    """

    transactions: List[RawTransaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    format_label: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.transactions
