"""Merchant and category lookup tables used by the normalizer.

Both tables are ordered and matched first-hit-wins, so entry order is part
of their meaning: ``"free"`` sits before ``"free mobile"`` and therefore
captures it.
"""

import re
from dataclasses import dataclass
from typing import Pattern, Tuple

SUBSCRIPTION_CATEGORY = "subscription"

# (lower-case substring, canonical merchant name)
KNOWN_MERCHANTS: Tuple[Tuple[str, str], ...] = (
    ("netflix", "Netflix"),
    ("spotify", "Spotify"),
    ("amazon prime", "Amazon Prime"),
    ("disney+", "Disney+"),
    ("disney plus", "Disney+"),
    ("deezer", "Deezer"),
    ("apple music", "Apple Music"),
    ("apple.com/bill", "Apple"),
    ("google storage", "Google One"),
    ("google *", "Google"),
    ("microsoft*", "Microsoft 365"),
    ("adobe creative", "Adobe Creative Cloud"),
    ("adobe *", "Adobe"),
    ("canal", "Canal+"),
    ("canal+", "Canal+"),
    ("orange sa", "Orange"),
    ("sfr", "SFR"),
    ("bouygues", "Bouygues Telecom"),
    ("free", "Free"),
    ("free mobile", "Free Mobile"),
    ("free telecom", "Free"),
    ("edf", "EDF"),
    ("engie", "Engie"),
    ("veolia", "Veolia"),
    ("assurance hab", "Assurance Habitation"),
    ("assurance auto", "Assurance Auto"),
    ("maif", "MAIF"),
    ("macif", "MACIF"),
    ("axa ", "AXA"),
    ("allianz", "Allianz"),
    ("basic fit", "Basic-Fit"),
    ("fitness park", "Fitness Park"),
    ("salle de sport", "Salle de sport"),
    ("gym ", "Salle de sport"),
    ("youtube premium", "YouTube Premium"),
    ("youtube music", "YouTube Music"),
    ("chatgpt", "ChatGPT Plus"),
    ("openai", "OpenAI"),
    ("notion ", "Notion"),
    ("figma ", "Figma"),
    ("github ", "GitHub"),
    ("linkedin premium", "LinkedIn Premium"),
    ("playstation", "PlayStation Plus"),
    ("xbox", "Xbox Game Pass"),
    ("nintendo", "Nintendo Switch Online"),
    ("crunchyroll", "Crunchyroll"),
    ("molotov", "Molotov TV"),
    ("salto", "Salto"),
    ("paramount", "Paramount+"),
    ("hbo max", "HBO Max"),
    ("nord vpn", "NordVPN"),
    ("nordvpn", "NordVPN"),
    ("express vpn", "ExpressVPN"),
    ("expressvpn", "ExpressVPN"),
)


def _patterns(*sources: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


# (category, patterns); checked only when no known merchant matched.
CATEGORY_PATTERNS: Tuple[Tuple[str, Tuple[Pattern[str], ...]], ...] = (
    (
        SUBSCRIPTION_CATEGORY,
        _patterns(r"abonnement", r"mensuel", r"monthly", r"subscription", r"premium", r"prelevement"),
    ),
    (
        "groceries",
        _patterns(
            r"carrefour", r"leclerc", r"auchan", r"lidl", r"intermarche",
            r"monoprix", r"franprix", r"picard", r"casino", r"super\s?u",
        ),
    ),
    (
        "transport",
        _patterns(
            r"sncf", r"ratp", r"navigo", r"uber", r"bolt", r"blablacar",
            r"total\s?energies", r"shell", r"bp\s", r"essence", r"parking",
            r"autoroute", r"peage",
        ),
    ),
    (
        "restaurant",
        _patterns(
            r"restaurant", r"mcdonalds", r"burger king", r"kfc", r"subway",
            r"deliveroo", r"uber\s?eats", r"just\s?eat",
        ),
    ),
    (
        "health",
        _patterns(r"pharmacie", r"medecin", r"docteur", r"hopital", r"mutuelle", r"cpam", r"ameli"),
    ),
    (
        "housing",
        _patterns(r"loyer", r"edf", r"engie", r"veolia", r"eau", r"electricite", r"gaz", r"charges"),
    ),
    (
        "insurance",
        _patterns(r"assurance", r"maif", r"macif", r"axa", r"allianz", r"groupama", r"matmut"),
    ),
    (
        "telecom",
        _patterns(r"orange", r"sfr", r"bouygues", r"free\s", r"free\s?mobile", r"sosh", r"red\s?by"),
    ),
    (
        "entertainment",
        _patterns(r"netflix", r"spotify", r"disney", r"canal", r"cinema", r"fnac", r"amazon\s?prime"),
    ),
    (
        "shopping",
        _patterns(r"amazon", r"cdiscount", r"zalando", r"h&m", r"zara", r"decathlon", r"ikea"),
    ),
)


@dataclass(frozen=True)
class MerchantTables:
    """Immutable lookup configuration handed to the normalizer."""

    merchants: Tuple[Tuple[str, str], ...] = KNOWN_MERCHANTS
    categories: Tuple[Tuple[str, Tuple[Pattern[str], ...]], ...] = CATEGORY_PATTERNS
    subscription_category: str = SUBSCRIPTION_CATEGORY


DEFAULT_TABLES = MerchantTables()
