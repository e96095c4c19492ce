"""
Renewal alerts over stored subscriptions.

All functions are pure: they take the subscriptions (and, for price
changes, recent merchant debits) plus a reference date, and return
alerts without touching storage.
"""

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from . import constants as C
from .costs import is_billable, monthly_cost
from .detector import mean, round_half_up
from .models import StoredTransaction, Subscription


class AlertType(str, Enum):
    RENEWAL = "renewal"
    PRICE_INCREASE = "price_increase"
    INACTIVE = "inactive"


class Severity(str, Enum):
    URGENT = "urgent"
    WARNING = "warning"
    INFO = "info"
    TIP = "tip"


SEVERITY_ORDER = {
    Severity.URGENT: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.TIP: 3,
}


@dataclass
class RenewalAlert:
    type: AlertType
    severity: Severity
    subscription_id: str
    merchant_name: str
    message: str
    date: Optional[date]
    amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["severity"] = self.severity.value
        return data


def format_amount(cents: int) -> str:
    return f"{cents / 100:.2f} EUR"


def _plural_days(days: int) -> str:
    return f"{days} day{'s' if days > 1 else ''}"


def renewal_severity(days_until: int) -> Severity:
    if days_until <= C.RENEWAL_URGENT_DAYS:
        return Severity.URGENT
    if days_until <= C.RENEWAL_WARNING_DAYS:
        return Severity.WARNING
    return Severity.INFO


def upcoming_renewals(
    subscriptions: Iterable[Subscription],
    now: date,
    window_days: int = C.RENEWAL_WINDOW_DAYS,
) -> List[RenewalAlert]:
    """Billable subscriptions whose next charge falls within the window."""
    due = [
        sub
        for sub in subscriptions
        if is_billable(sub)
        and sub.next_charge_date is not None
        and 0 <= (sub.next_charge_date - now).days <= window_days
    ]
    due.sort(key=lambda sub: sub.next_charge_date)

    alerts = []
    for sub in due:
        days_until = (sub.next_charge_date - now).days
        alerts.append(
            RenewalAlert(
                type=AlertType.RENEWAL,
                severity=renewal_severity(days_until),
                subscription_id=sub.id,
                merchant_name=sub.label,
                message=f"{sub.label} renews in {_plural_days(days_until)} ({format_amount(sub.amount)})",
                date=sub.next_charge_date,
                amount=sub.amount,
            )
        )
    return alerts


def inactive_subscriptions(subscriptions: Iterable[Subscription], now: date) -> List[RenewalAlert]:
    """Active subscriptions not charged for 1.5x their expected interval."""
    alerts = []
    for sub in subscriptions:
        if sub.status != C.STATUS_ACTIVE or sub.last_charge_date is None:
            continue

        expected = C.FREQUENCY_DAYS.get(sub.frequency, 30)
        days_since = (now - sub.last_charge_date).days
        if days_since <= expected * C.INACTIVE_INTERVAL_FACTOR:
            continue

        alerts.append(
            RenewalAlert(
                type=AlertType.INACTIVE,
                severity=Severity.TIP,
                subscription_id=sub.id,
                merchant_name=sub.label,
                message=(
                    f"No charge from {sub.label} for {days_since} days. "
                    "This subscription may already be cancelled."
                ),
                date=sub.last_charge_date,
                amount=monthly_cost(sub),
            )
        )
    return alerts


def detect_price_increase(debits: Sequence[StoredTransaction]) -> Optional[int]:
    """
    Compare the latest debit with the mean of the ones before it.

    Only the most recent PRICE_INCREASE_HISTORY debits are considered.
    Returns the increase in cents, or None if the latest charge is not
    more than 5% above the previous average.
    """
    recent = sorted(debits, key=lambda tx: tx.date, reverse=True)[: C.PRICE_INCREASE_HISTORY]
    if len(recent) < 2:
        return None

    latest = abs(recent[0].amount)
    previous_avg = mean([abs(tx.amount) for tx in recent[1:]])
    if latest > previous_avg * C.PRICE_INCREASE_THRESHOLD:
        return latest - round_half_up(previous_avg)
    return None


def price_changes(
    subscriptions: Iterable[Subscription],
    debits_by_merchant: Mapping[str, Sequence[StoredTransaction]],
) -> List[RenewalAlert]:
    """Active subscriptions whose latest charge went up by more than 5%."""
    alerts = []
    for sub in subscriptions:
        if sub.status != C.STATUS_ACTIVE:
            continue
        if len(sub.transaction_ids) < C.PRICE_INCREASE_MIN_TRANSACTIONS:
            continue

        debits = [tx for tx in debits_by_merchant.get(sub.merchant_name, ()) if tx.amount < 0]
        increase = detect_price_increase(debits)
        if increase is None:
            continue

        latest = max(debits, key=lambda tx: tx.date)
        alerts.append(
            RenewalAlert(
                type=AlertType.PRICE_INCREASE,
                severity=Severity.WARNING,
                subscription_id=sub.id,
                merchant_name=sub.label,
                message=f"{sub.label} went up by {format_amount(increase)} this period",
                date=latest.date,
                amount=increase,
            )
        )
    return alerts


def all_alerts(
    subscriptions: Sequence[Subscription],
    debits_by_merchant: Mapping[str, Sequence[StoredTransaction]],
    now: date,
    window_days: int = C.RENEWAL_WINDOW_DAYS,
) -> List[RenewalAlert]:
    """Every alert for a user, most severe first."""
    alerts = (
        upcoming_renewals(subscriptions, now, window_days)
        + price_changes(subscriptions, debits_by_merchant)
        + inactive_subscriptions(subscriptions, now)
    )
    alerts.sort(key=lambda alert: SEVERITY_ORDER[alert.severity])
    return alerts
