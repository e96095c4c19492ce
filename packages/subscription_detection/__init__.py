"""
Subscription Detection

Recurring-charge detection over stored transactions, the merge policy
against stored subscriptions, cost normalization and renewal alerts.
"""

__version__ = "0.1.0"

from .constants import Frequency
from .costs import annual_cost, monthly_cost, total_annual_cost, total_monthly_cost
from .detector import SubscriptionDetector, detect_subscriptions
from .merge import (
    MergeSummary,
    SubscriptionNotFoundError,
    SubscriptionStore,
    persist_detected_subscriptions,
)
from .models import DetectedSubscription, StoredTransaction, Subscription
from .renewals import RenewalAlert, all_alerts

__all__ = [
    "Frequency",
    "SubscriptionDetector",
    "detect_subscriptions",
    "DetectedSubscription",
    "StoredTransaction",
    "Subscription",
    "SubscriptionStore",
    "SubscriptionNotFoundError",
    "MergeSummary",
    "persist_detected_subscriptions",
    "monthly_cost",
    "annual_cost",
    "total_monthly_cost",
    "total_annual_cost",
    "RenewalAlert",
    "all_alerts",
]
