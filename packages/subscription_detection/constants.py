"""Tuning constants for recurring-subscription detection.

Every threshold consumed by the detector, the merge policy, the cost
helpers and the renewal alerts lives here, so each can be adjusted and
tested independently of the control flow that reads it.
"""

from enum import Enum
from typing import NamedTuple


class Frequency(str, Enum):
    """Recurrence classes a subscription can be assigned to."""

    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    BIMONTHLY = "BIMONTHLY"
    QUARTERLY = "QUARTERLY"
    SEMIANNUAL = "SEMIANNUAL"
    ANNUAL = "ANNUAL"


class FrequencyRule(NamedTuple):
    frequency: Frequency
    days: int
    tolerance: int


# Checked in order; the first rule whose target is within tolerance wins.
FREQUENCY_LADDER: tuple[FrequencyRule, ...] = (
    FrequencyRule(Frequency.WEEKLY, 7, 2),
    FrequencyRule(Frequency.BIWEEKLY, 14, 3),
    FrequencyRule(Frequency.MONTHLY, 30, 5),
    FrequencyRule(Frequency.BIMONTHLY, 60, 7),
    FrequencyRule(Frequency.QUARTERLY, 90, 10),
    FrequencyRule(Frequency.SEMIANNUAL, 180, 15),
    FrequencyRule(Frequency.ANNUAL, 365, 30),
)

FREQUENCY_DAYS: dict[str, int] = {rule.frequency.value: rule.days for rule in FREQUENCY_LADDER}

# Grouping
MIN_OCCURRENCES = 2

# Non-standard but consistent intervals snap to the nearest ladder entry
NONSTANDARD_MAX_INTERVAL_CV = 0.20  # interval stddev / mean
NONSTANDARD_MIN_MEAN_DAYS = 5

# Amount consistency, in percent
MAX_AMOUNT_CV_PERCENT = 15

# Confidence scoring (additive, out of 100)
SCORE_OCCURRENCES_HIGH = 40  # >= 3 occurrences
SCORE_OCCURRENCES_LOW = 20  # >= 2 occurrences
OCCURRENCES_HIGH = 3
OCCURRENCES_LOW = 2

SCORE_INTERVAL_TIGHT = 20
SCORE_INTERVAL_LOOSE = 10
INTERVAL_STDDEV_TIGHT_DAYS = 3
INTERVAL_STDDEV_LOOSE_DAYS = 5

SCORE_AMOUNT_TIGHT = 20
SCORE_AMOUNT_LOOSE = 10
AMOUNT_CV_TIGHT_PERCENT = 5
AMOUNT_CV_LOOSE_PERCENT = 10

SCORE_KNOWN_MERCHANT = 10
SCORE_SUBSCRIPTION_CATEGORY = 10

MAX_CONFIDENCE = 100
MIN_CONFIDENCE = 60

# A stored subscription at this confidence was confirmed by its owner
CONFIRMED_CONFIDENCE = 100

SUBSCRIPTION_CATEGORY = "subscription"

KNOWN_SUBSCRIPTION_MERCHANTS: frozenset[str] = frozenset(
    {
        "Netflix",
        "Spotify",
        "Amazon Prime",
        "Disney+",
        "Canal+",
        "Deezer",
        "Apple Music",
        "Apple",
        "Google One",
        "Microsoft 365",
        "Adobe Creative Cloud",
        "YouTube Premium",
        "YouTube Music",
        "ChatGPT Plus",
        "OpenAI",
        "Notion",
        "Figma",
        "GitHub",
        "LinkedIn Premium",
        "PlayStation Plus",
        "Xbox Game Pass",
        "Nintendo Switch Online",
        "Crunchyroll",
        "Molotov TV",
        "Paramount+",
        "HBO Max",
        "NordVPN",
        "ExpressVPN",
        "Basic-Fit",
        "Fitness Park",
        "Free Mobile",
        "Free",
        "Orange",
        "SFR",
        "Bouygues Telecom",
        "EDF",
        "Engie",
        "Veolia",
        "MAIF",
        "MACIF",
        "AXA",
        "Allianz",
    }
)

# Monthly-equivalent multipliers
MONTHLY_COST_MULTIPLIERS: dict[str, float] = {
    Frequency.WEEKLY.value: 52 / 12,
    Frequency.BIWEEKLY.value: 26 / 12,
    Frequency.MONTHLY.value: 1,
    Frequency.BIMONTHLY.value: 1 / 2,
    Frequency.QUARTERLY.value: 1 / 3,
    Frequency.SEMIANNUAL.value: 1 / 6,
    Frequency.ANNUAL.value: 1 / 12,
}

# Subscription lifecycle
STATUS_ACTIVE = "ACTIVE"
STATUS_ENDING_SOON = "ENDING_SOON"
BILLABLE_STATUSES = frozenset({STATUS_ACTIVE, STATUS_ENDING_SOON})

# Renewal alerts
RENEWAL_WINDOW_DAYS = 30
RENEWAL_URGENT_DAYS = 3
RENEWAL_WARNING_DAYS = 7
INACTIVE_INTERVAL_FACTOR = 1.5
PRICE_INCREASE_MIN_TRANSACTIONS = 3
PRICE_INCREASE_HISTORY = 5
PRICE_INCREASE_THRESHOLD = 1.05
