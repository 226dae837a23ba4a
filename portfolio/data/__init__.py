"""Record store access."""

from __future__ import annotations

from portfolio.data.models import DataPoint, Metric, StockHistory, UnavailableReason
from portfolio.data.store import histories_from_frame, load_collection

__all__ = [
    "DataPoint",
    "Metric",
    "StockHistory",
    "UnavailableReason",
    "histories_from_frame",
    "load_collection",
]
