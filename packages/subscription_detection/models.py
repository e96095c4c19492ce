"""Records consumed and produced by subscription detection."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .constants import STATUS_ACTIVE


@dataclass(frozen=True)
class StoredTransaction:
    """A persisted, normalized transaction as read back from the store."""

    id: str
    date: date
    amount: int  # cents, signed
    merchant_name: Optional[str]
    category: Optional[str] = None


@dataclass
class DetectedSubscription:
    """Candidate produced by one detection run; not persisted as such."""

    merchant_name: str
    average_amount: int  # cents, positive
    frequency: str
    confidence: int
    next_charge_date: Optional[date]
    first_charge_date: date
    last_charge_date: date
    transaction_ids: List[str]
    category: Optional[str]
    occurrences: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merchant_name": self.merchant_name,
            "amount": self.average_amount,
            "frequency": self.frequency,
            "confidence": self.confidence,
            "next_charge_date": self.next_charge_date,
            "first_charge_date": self.first_charge_date,
            "last_charge_date": self.last_charge_date,
            "occurrences": self.occurrences,
            "category": self.category,
        }


@dataclass
class Subscription:
    """Store-of-record subscription; confidence 100 means user-confirmed."""

    id: str
    user_id: str
    merchant_name: str
    amount: int
    frequency: str
    confidence: int
    next_charge_date: Optional[date] = None
    last_charge_date: Optional[date] = None
    first_charge_date: Optional[date] = None
    category: Optional[str] = None
    transaction_ids: List[str] = field(default_factory=list)
    status: str = STATUS_ACTIVE
    currency: str = "EUR"
    display_name: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.merchant_name
