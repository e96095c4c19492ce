"""Monthly and annual cost equivalents for stored subscriptions."""

from collections import Counter
from datetime import date
from typing import Any, Dict, Iterable, List, Sequence

from .constants import BILLABLE_STATUSES, MONTHLY_COST_MULTIPLIERS, RENEWAL_WINDOW_DAYS
from .detector import round_half_up
from .models import Subscription

TOP_EXPENSIVE_LIMIT = 5
UNCATEGORIZED = "other"


def monthly_cost(subscription: Subscription) -> int:
    """Monthly-equivalent charge in cents; unknown frequencies count as monthly."""
    multiplier = MONTHLY_COST_MULTIPLIERS.get(subscription.frequency, 1)
    return round_half_up(subscription.amount * multiplier)


def annual_cost(subscription: Subscription) -> int:
    return monthly_cost(subscription) * 12


def is_billable(subscription: Subscription) -> bool:
    return subscription.status in BILLABLE_STATUSES


def total_monthly_cost(subscriptions: Iterable[Subscription]) -> int:
    return sum(monthly_cost(sub) for sub in subscriptions if is_billable(sub))


def total_annual_cost(subscriptions: Iterable[Subscription]) -> int:
    return total_monthly_cost(subscriptions) * 12


def subscription_stats(
    subscriptions: Sequence[Subscription],
    now: date,
    window_days: int = RENEWAL_WINDOW_DAYS,
) -> Dict[str, Any]:
    """
    Dashboard summary of a user's subscriptions.

    Costs, category breakdown, top spenders and upcoming charges only
    consider billable (ACTIVE or ENDING_SOON) subscriptions; status
    counts cover all of them.
    """
    billable = [sub for sub in subscriptions if is_billable(sub)]
    monthly_total = sum(monthly_cost(sub) for sub in billable)

    by_category: Dict[str, Dict[str, int]] = {}
    for sub in billable:
        entry = by_category.setdefault(sub.category or UNCATEGORIZED, {"count": 0, "monthly_cost": 0})
        entry["count"] += 1
        entry["monthly_cost"] += monthly_cost(sub)

    top_expensive: List[Dict[str, Any]] = [
        {
            "id": sub.id,
            "merchant_name": sub.label,
            "monthly_cost": monthly_cost(sub),
            "frequency": sub.frequency,
            "category": sub.category,
        }
        for sub in sorted(billable, key=monthly_cost, reverse=True)[:TOP_EXPENSIVE_LIMIT]
    ]

    upcoming = sorted(
        (
            sub
            for sub in billable
            if sub.next_charge_date is not None
            and 0 <= (sub.next_charge_date - now).days <= window_days
        ),
        key=lambda sub: sub.next_charge_date,
    )

    return {
        "total_monthly_cost": monthly_total,
        "total_annual_cost": monthly_total * 12,
        "active_count": len(billable),
        "total_count": len(subscriptions),
        "by_status": dict(Counter(sub.status for sub in subscriptions)),
        "by_category": by_category,
        "top_expensive": top_expensive,
        "upcoming": [
            {
                "id": sub.id,
                "merchant_name": sub.label,
                "amount": sub.amount,
                "next_charge_date": sub.next_charge_date,
            }
            for sub in upcoming
        ],
    }
