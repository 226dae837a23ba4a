"""Numeric input cleaning shared by the metric modules."""

from __future__ import annotations

import math


def as_float(value: object) -> float | None:
    """Extract a finite float from a raw field value.

    Args:
        value: Raw field value (may be None, a bool, non-numeric text,
            NaN, or infinite).

    Returns:
        Finite float, or None on any of the above.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f
