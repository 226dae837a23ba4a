"""Display formatting: rounding, percent, thousands grouping, currency.

All rounding is round-half-away-from-zero at a fixed number of decimals
and happens before the number is turned into text. Numbers are rendered
without trailing zeros, so 15.0 becomes "15" and 7.25 stays "7.25".
Grouping always uses "," regardless of locale.
"""

from __future__ import annotations

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext

THOUSANDS_SEPARATOR = ","

# Enough digits for any finite float quantized to a handful of decimals.
_PRECISION = 400


def _quantize(value: float, decimals: int | None) -> Decimal:
    """Convert a finite number to a rounded, normalized Decimal.

    Integers are taken exactly. Floats use their shortest repr so that
    2.675 rounds as written rather than as its binary approximation.
    """
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        if isinstance(value, int) and not isinstance(value, bool):
            number = Decimal(value)
        else:
            value = float(value)
            if not math.isfinite(value):
                raise ValueError(f"Cannot format non-finite value {value!r}")
            number = Decimal(repr(value))
        if decimals is not None:
            number = number.quantize(
                Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP,
            )
        if number == 0:
            # Drop the sign of -0.0 and of negatives that round to zero.
            return Decimal(0)
        return number.normalize()


def round_half_away(value: float, decimals: int = 0) -> float:
    """Round to ``decimals`` places, halves away from zero.

    >>> round_half_away(2.5)
    3.0
    >>> round_half_away(-2.5)
    -3.0
    """
    return float(_quantize(value, decimals))


def number_text(value: float, decimals: int | None = None) -> str:
    """Plain fixed-point text, optionally rounded first."""
    return format(_quantize(value, decimals), "f")


def group_thousands(value: float, decimals: int | None = None) -> str:
    """Integer part grouped in threes, e.g. 1234567.5 -> "1,234,567.5"."""
    return format(_quantize(value, decimals), ",f")


def percent(value: float, decimals: int | None = None) -> str:
    """Append a percent sign. ``value`` is already in percent units."""
    return f"{number_text(value, decimals)}%"


def currency(value: float, decimals: int | None = 2, symbol: str = "$") -> str:
    """Grouped monetary amount with the sign ahead of the symbol."""
    number = _quantize(value, decimals)
    sign = "-" if number < 0 else ""
    return f"{sign}{symbol}{format(abs(number), ',f')}"


def format_date(value: date, date_format: str = "%b %d, %Y") -> str:
    """Human-readable date, e.g. "Jan 05, 2024"."""
    return value.strftime(date_format)


def parse_grouped(text: str) -> int | float:
    """Inverse of group_thousands for display strings.

    Returns an int when the text has no fractional part.
    """
    cleaned = text.replace(THOUSANDS_SEPARATOR, "").strip()
    if not cleaned:
        raise ValueError("Empty numeric text")
    if "." in cleaned:
        return float(cleaned)
    return int(cleaned)
