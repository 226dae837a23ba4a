"""Data models for the collection engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum

# Raw numeric fields carried by every annual data point, in display order.
RAW_FIELDS: tuple[str, ...] = (
    "price",
    "yield_",
    "shares_outstanding",
    "market_cap",
    "net_debt",
    "enterprise_value",
    "revenue",
    "aebitda",
    "asset_turnover",
    "roe",
    "effective_tax",
    "fcf",
)


@dataclass
class DataPoint:
    """One fiscal-year snapshot for a stock.

    Attributes:
        date: Snapshot date. Only the year is used for horizon matching.
        price: Share price.
        yield_: Dividend yield in percent (``yield`` in the record store).
        shares_outstanding: Shares outstanding.
        market_cap: Market capitalisation.
        net_debt: Total debt less cash.
        enterprise_value: Market cap plus net debt.
        revenue: Annual revenue.
        aebitda: Adjusted EBITDA.
        asset_turnover: Revenue / total assets.
        roe: Return on equity in percent.
        effective_tax: Effective tax rate in percent.
        fcf: Free cash flow.

    Any numeric field may be None when the store has no usable value.
    """

    date: date | None
    price: float | None = None
    yield_: float | None = None
    shares_outstanding: float | None = None
    market_cap: float | None = None
    net_debt: float | None = None
    enterprise_value: float | None = None
    revenue: float | None = None
    aebitda: float | None = None
    asset_turnover: float | None = None
    roe: float | None = None
    effective_tax: float | None = None
    fcf: float | None = None


@dataclass
class StockHistory:
    """A tracked symbol and its annual data points.

    Attributes:
        symbol: Ticker symbol.
        points: Data points sorted by date descending. ``points[0]`` is the
            most recent. May have gaps and may be empty.
        company: Company name.
        exchange: Listing exchange.
        note: Free-text owner note.
        enabled: False when the owner has toggled the stock off.
    """

    symbol: str
    points: list[DataPoint] = field(default_factory=list)
    company: str = ""
    exchange: str = ""
    note: str = ""
    enabled: bool = True


class UnavailableReason(Enum):
    """Why a derived or growth figure could not be produced."""

    MISSING_FIELD = "missing_field"
    NO_HISTORICAL_REFERENCE = "no_historical_reference"
    DEGENERATE_ARITHMETIC = "degenerate_arithmetic"
    EMPTY_HISTORY = "empty_history"


@dataclass(frozen=True)
class Metric:
    """A single display figure.

    Attributes:
        value: Unrounded numeric value. None if unavailable or the figure
            is not numeric (e.g. a date string).
        text: Display string, already rounded and suffixed.
        reason: Set when the figure is unavailable.
    """

    value: float | None
    text: str
    reason: UnavailableReason | None = None

    @property
    def available(self) -> bool:
        return self.reason is None
