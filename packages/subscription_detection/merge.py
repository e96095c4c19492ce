"""
Merge policy between detection candidates and stored subscriptions.

Confirmed subscriptions (confidence 100) keep their amount, frequency and
confidence; detection only refreshes their transaction ids and charge
dates. Unconfirmed ones follow the latest detection, with confidence
never decreasing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Protocol

from .constants import CONFIRMED_CONFIDENCE, STATUS_ACTIVE
from .models import DetectedSubscription, Subscription

logger = logging.getLogger(__name__)


class SubscriptionNotFoundError(LookupError):
    """Raised when an update targets a subscription the user does not own."""

    def __init__(self, subscription_id: str, user_id: Optional[str] = None):
        self.subscription_id = subscription_id
        self.user_id = user_id
        super().__init__(f"Subscription {subscription_id} not found")


class SubscriptionStore(Protocol):
    """Read/write access to a user's stored subscriptions."""

    def find_by_merchant(self, user_id: str, merchant_name: str) -> Optional[Subscription]:
        ...

    def create(self, user_id: str, fields: Dict[str, Any]) -> Optional[Subscription]:
        """Insert a subscription; ``None`` if one already exists for the merchant."""
        ...

    def update(self, user_id: str, subscription_id: str, fields: Dict[str, Any]) -> Subscription:
        ...


class MergeAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    REFRESH = "refresh"
    UNCHANGED = "unchanged"


@dataclass
class MergeDecision:
    action: MergeAction
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class MergeSummary:
    created: int = 0
    updated: int = 0
    refreshed: int = 0
    unchanged: int = 0

    def record(self, action: MergeAction) -> None:
        attr = {
            MergeAction.CREATE: "created",
            MergeAction.UPDATE: "updated",
            MergeAction.REFRESH: "refreshed",
            MergeAction.UNCHANGED: "unchanged",
        }[action]
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "refreshed": self.refreshed,
            "unchanged": self.unchanged,
        }


def is_confirmed(subscription: Subscription) -> bool:
    return subscription.confidence >= CONFIRMED_CONFIDENCE


def has_changed(existing: Subscription, candidate: DetectedSubscription) -> bool:
    return (
        existing.amount != candidate.average_amount
        or existing.frequency != candidate.frequency
        or existing.confidence != candidate.confidence
    )


def plan_merge(
    existing: Optional[Subscription],
    candidate: DetectedSubscription,
    default_currency: str = "EUR",
) -> MergeDecision:
    """Decide how one candidate reconciles with the stored record (if any)."""
    if existing is None:
        return MergeDecision(
            MergeAction.CREATE,
            {
                "merchant_name": candidate.merchant_name,
                "display_name": candidate.merchant_name,
                "amount": candidate.average_amount,
                "currency": default_currency,
                "frequency": candidate.frequency,
                "category": candidate.category,
                "status": STATUS_ACTIVE,
                "confidence": candidate.confidence,
                "next_charge_date": candidate.next_charge_date,
                "last_charge_date": candidate.last_charge_date,
                "first_charge_date": candidate.first_charge_date,
                "transaction_ids": list(candidate.transaction_ids),
            },
        )

    if is_confirmed(existing):
        return MergeDecision(
            MergeAction.REFRESH,
            {
                "transaction_ids": list(candidate.transaction_ids),
                "last_charge_date": candidate.last_charge_date,
                "next_charge_date": candidate.next_charge_date,
            },
        )

    if not has_changed(existing, candidate):
        return MergeDecision(MergeAction.UNCHANGED)

    return MergeDecision(
        MergeAction.UPDATE,
        {
            "amount": candidate.average_amount,
            "frequency": candidate.frequency,
            "confidence": max(existing.confidence, candidate.confidence),
            "next_charge_date": candidate.next_charge_date,
            "last_charge_date": candidate.last_charge_date,
            "first_charge_date": candidate.first_charge_date or existing.first_charge_date,
            "category": candidate.category or existing.category,
            "transaction_ids": list(candidate.transaction_ids),
        },
    )


def persist_detected_subscriptions(
    store: SubscriptionStore,
    user_id: str,
    detected: Iterable[DetectedSubscription],
    default_currency: str = "EUR",
) -> MergeSummary:
    """
    Reconcile a detection run with the user's stored subscriptions.

    Args:
        store: Subscription store scoped to the caller
        user_id: Owner of the transactions that were analyzed
        detected: Candidates from SubscriptionDetector.detect
        default_currency: Currency for newly created records

    Returns:
        MergeSummary with per-action counters
    """
    summary = MergeSummary()

    for candidate in detected:
        existing = store.find_by_merchant(user_id, candidate.merchant_name)
        decision = plan_merge(existing, candidate, default_currency)

        if decision.action == MergeAction.CREATE:
            if store.create(user_id, decision.fields) is None:
                logger.debug(f"{candidate.merchant_name} was created concurrently, left as is")
                summary.record(MergeAction.UNCHANGED)
                continue
        elif decision.action in (MergeAction.UPDATE, MergeAction.REFRESH):
            store.update(user_id, existing.id, decision.fields)

        summary.record(decision.action)

    logger.info(
        f"Merged detection for user {user_id}: "
        f"{summary.created} created, {summary.updated} updated, "
        f"{summary.refreshed} refreshed, {summary.unchanged} unchanged"
    )
    return summary
