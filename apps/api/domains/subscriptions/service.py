"""Subscriptions service — detection runs, confirmation, alerts and stats.

Thin orchestration over packages.subscription_detection: the router
fetches rows through the Supabase stores and hands plain domain objects
to these functions.
"""

from dataclasses import asdict
from datetime import date
from typing import Any, Optional

import structlog

from apps.api.core.errors import NotFoundError
from packages.subscription_detection import (
    StoredTransaction,
    Subscription,
    SubscriptionNotFoundError,
    SubscriptionStore,
    all_alerts,
    detect_subscriptions,
    persist_detected_subscriptions,
)
from packages.subscription_detection.constants import CONFIRMED_CONFIDENCE
from packages.subscription_detection.costs import subscription_stats
from packages.subscription_detection.detector import group_by_merchant

logger = structlog.get_logger()


def run_detection(
    store: SubscriptionStore,
    user_id: str,
    debits: list[StoredTransaction],
    now: Optional[date] = None,
    default_currency: str = "EUR",
) -> dict[str, Any]:
    """Detect subscriptions in the user's debits and merge them into the store."""
    detected = detect_subscriptions(debits, now=now)
    summary = persist_detected_subscriptions(store, user_id, detected, default_currency)

    logger.info(
        "subscriptions_detected",
        user_id=user_id,
        transactions=len(debits),
        detected=len(detected),
        **summary.to_dict(),
    )
    return {
        "message": f"{summary.created} subscription(s) detected, {summary.updated} updated",
        "detected": len(detected),
        **summary.to_dict(),
        "subscriptions": [candidate.to_dict() for candidate in detected],
    }


def confirm_subscription(store: SubscriptionStore, user_id: str, subscription_id: str) -> Subscription:
    """Mark a subscription as confirmed by its owner.

    Raises:
        NotFoundError: the id does not exist or belongs to another user
    """
    try:
        subscription = store.update(user_id, subscription_id, {"confidence": CONFIRMED_CONFIDENCE})
    except SubscriptionNotFoundError:
        raise NotFoundError(f"Subscription {subscription_id} not found")

    logger.info("subscription_confirmed", user_id=user_id, subscription_id=subscription_id)
    return subscription


def subscription_to_dict(subscription: Subscription) -> dict[str, Any]:
    data = asdict(subscription)
    data.pop("user_id")
    return data


def renewal_alerts(
    subscriptions: list[Subscription],
    debits: list[StoredTransaction],
    now: date,
    window_days: int,
) -> list[dict[str, Any]]:
    alerts = all_alerts(subscriptions, group_by_merchant(debits), now, window_days)
    return [alert.to_dict() for alert in alerts]


def stats(subscriptions: list[Subscription], now: date, window_days: int) -> dict[str, Any]:
    return subscription_stats(subscriptions, now, window_days)
