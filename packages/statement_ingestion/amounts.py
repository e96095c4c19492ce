"""Amount parsing for bank exports written with French or plain conventions."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

ZERO = Decimal("0")

# Leading numeric prefix, mirroring how lenient float parsing stops at junk.
_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)")
_NOISE = re.compile(r"\s|€|EUR", re.IGNORECASE)


def _to_decimal(text: str) -> Decimal:
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return ZERO
    try:
        value = Decimal(match.group(0))
    except InvalidOperation:
        return ZERO
    return value if value.is_finite() else ZERO


def parse_amount(value: Union[str, None]) -> Decimal:
    """Parse an amount cell into major units.

    ``1 234,56`` and ``1.234,56`` both read as 1234.56: when a comma is
    present it is the decimal separator and dots are thousands separators.
    Blank or unreadable cells are zero.
    """
    if value is None:
        return ZERO
    cleaned = _NOISE.sub("", str(value)).strip()
    if not cleaned:
        return ZERO

    if "," in cleaned:
        parts = cleaned.split(",")
        int_part = parts[0].replace(".", "")
        dec_part = parts[1] or "00"
        return _to_decimal(f"{int_part}.{dec_part}")

    return _to_decimal(cleaned)


def to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    """Coerce a numeric value to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_minor_units(amount: Union[Decimal, float, int, str]) -> int:
    """Convert major units to integer cents, rounding half away from zero."""
    cents = to_decimal(amount) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
