"""
Recurring Subscription Detector.

Groups a user's merchant debits, fits an interval/amount model per
merchant, and emits confidence-scored subscription candidates with an
extrapolated next charge date. Stateless: every run recomputes from the
full transaction history it is given.
"""

import logging
import math
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from . import constants as C
from .constants import FrequencyRule
from .models import DetectedSubscription, StoredTransaction

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def stddev(values: Sequence[float]) -> float:
    """Population standard deviation; zero for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values))


def group_by_merchant(
    transactions: Iterable[StoredTransaction],
) -> Dict[str, List[StoredTransaction]]:
    """Group debits carrying a merchant name, preserving first-seen order."""
    groups: Dict[str, List[StoredTransaction]] = {}
    for tx in transactions:
        if not tx.merchant_name or tx.amount >= 0:
            continue
        groups.setdefault(tx.merchant_name, []).append(tx)
    return groups


def calculate_intervals(dates: Iterable[date]) -> List[int]:
    """Day gaps between consecutive dates, after sorting ascending."""
    ordered = sorted(dates)
    return [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]


def classify_frequency(intervals: Sequence[int]) -> Optional[FrequencyRule]:
    """Map intervals to a frequency rule, or None if they are not periodic."""
    if not intervals:
        return None

    avg = mean(intervals)
    for rule in C.FREQUENCY_LADDER:
        if abs(avg - rule.days) <= rule.tolerance:
            return rule

    # Consistent but non-standard: snap to the nearest ladder entry
    if stddev(intervals) < avg * C.NONSTANDARD_MAX_INTERVAL_CV and avg > C.NONSTANDARD_MIN_MEAN_DAYS:
        return min(C.FREQUENCY_LADDER, key=lambda rule: abs(rule.days - avg))

    return None


def amount_cv_percent(amounts: Sequence[float]) -> float:
    """Coefficient of variation of amounts, in percent (100 if mean is 0)."""
    avg = mean(amounts)
    if avg <= 0:
        return 100.0
    return stddev(amounts) / avg * 100


def calculate_confidence(
    occurrences: int,
    interval_stddev: float,
    amount_cv: float,
    is_known_merchant: bool,
    is_subscription_category: bool,
) -> int:
    """Additive 0-100 score for how subscription-like a pattern is."""
    score = 0

    if occurrences >= C.OCCURRENCES_HIGH:
        score += C.SCORE_OCCURRENCES_HIGH
    elif occurrences >= C.OCCURRENCES_LOW:
        score += C.SCORE_OCCURRENCES_LOW

    if interval_stddev < C.INTERVAL_STDDEV_TIGHT_DAYS:
        score += C.SCORE_INTERVAL_TIGHT
    elif interval_stddev < C.INTERVAL_STDDEV_LOOSE_DAYS:
        score += C.SCORE_INTERVAL_LOOSE

    if amount_cv < C.AMOUNT_CV_TIGHT_PERCENT:
        score += C.SCORE_AMOUNT_TIGHT
    elif amount_cv < C.AMOUNT_CV_LOOSE_PERCENT:
        score += C.SCORE_AMOUNT_LOOSE

    if is_known_merchant:
        score += C.SCORE_KNOWN_MERCHANT
    if is_subscription_category:
        score += C.SCORE_SUBSCRIPTION_CATEGORY

    return max(0, min(C.MAX_CONFIDENCE, score))


def extrapolate_next_charge(last_date: date, frequency_days: int, now: date) -> date:
    """Step forward from the last charge until strictly after ``now``."""
    step = timedelta(days=frequency_days)
    next_date = last_date + step
    while next_date <= now:
        next_date += step
    return next_date


def plurality_category(transactions: Sequence[StoredTransaction]) -> Optional[str]:
    """Most common category; ties go to the first one seen."""
    counts = Counter(tx.category for tx in transactions if tx.category)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def _as_date(value: Union[date, datetime, None]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


class SubscriptionDetector:
    """Runs the per-merchant detection pass over a transaction history."""

    def __init__(self, known_merchants: frozenset = C.KNOWN_SUBSCRIPTION_MERCHANTS):
        self.known_merchants = known_merchants

    def analyze_group(
        self, merchant: str, transactions: Sequence[StoredTransaction], now: date
    ) -> Optional[DetectedSubscription]:
        """Return a candidate for one merchant group, or None if rejected."""
        if len(transactions) < C.MIN_OCCURRENCES:
            return None

        dates = sorted(tx.date for tx in transactions)
        intervals = calculate_intervals(dates)
        rule = classify_frequency(intervals)
        if rule is None:
            return None

        amounts = [abs(tx.amount) for tx in transactions]
        amount_cv = amount_cv_percent(amounts)
        if amount_cv > C.MAX_AMOUNT_CV_PERCENT:
            return None

        category = plurality_category(transactions)
        confidence = calculate_confidence(
            occurrences=len(transactions),
            interval_stddev=stddev(intervals),
            amount_cv=amount_cv,
            is_known_merchant=merchant in self.known_merchants,
            is_subscription_category=category == C.SUBSCRIPTION_CATEGORY,
        )
        if confidence < C.MIN_CONFIDENCE:
            return None

        return DetectedSubscription(
            merchant_name=merchant,
            average_amount=round_half_up(mean(amounts)),
            frequency=rule.frequency.value,
            confidence=confidence,
            next_charge_date=extrapolate_next_charge(dates[-1], rule.days, now),
            first_charge_date=dates[0],
            last_charge_date=dates[-1],
            transaction_ids=[tx.id for tx in transactions],
            category=category,
            occurrences=len(transactions),
        )

    def detect(
        self,
        transactions: Iterable[StoredTransaction],
        now: Union[date, datetime, None] = None,
    ) -> List[DetectedSubscription]:
        """
        Detect subscription candidates in a user's transaction history.

        Args:
            transactions: Stored transactions, ideally date-ascending debits
                with a merchant name (others are ignored)
            now: Reference date for next-charge extrapolation (default today)

        Returns:
            Candidates sorted by confidence, then average amount, descending
        """
        today = _as_date(now)
        groups = group_by_merchant(transactions)

        detected = []
        for merchant, group in groups.items():
            candidate = self.analyze_group(merchant, group, today)
            if candidate:
                detected.append(candidate)

        detected.sort(key=lambda d: (-d.confidence, -d.average_amount))
        logger.info(f"Detected {len(detected)} subscriptions across {len(groups)} merchants")
        return detected


def detect_subscriptions(
    transactions: Iterable[StoredTransaction],
    now: Union[date, datetime, None] = None,
) -> List[DetectedSubscription]:
    """Convenience function to run the default detector."""
    return SubscriptionDetector().detect(transactions, now=now)
