"""Horizon growth: compound growth rates and share count change.

The most recent point (index 0 of a descending history) is compared with
the point whose fiscal year lies exactly ``h`` years earlier, for each
configured horizon ``h``. Horizons without such a point are unavailable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date

from portfolio import formatting
from portfolio.config import FormatConfig, GrowthConfig
from portfolio.data.models import DataPoint, Metric, StockHistory, UnavailableReason
from portfolio.metrics.values import as_float

logger = logging.getLogger(__name__)

# Measures reported as compound annual growth rates.
CAGR_MEASURES: tuple[str, ...] = ("price", "revenue", "aebitda", "fcf")

# Measure reported as an absolute change.
SHARE_MEASURE = "shares_outstanding"

GROWTH_MEASURES: tuple[str, ...] = CAGR_MEASURES + (SHARE_MEASURE,)


class DuplicateOffsetError(ValueError):
    """Two historical points fall on the same horizon offset."""


@dataclass
class GrowthResult:
    """Growth figures for one stock.

    Attributes:
        symbol: Ticker symbol.
        end_date: Date of the most recent point. None for an empty history.
        references: Horizon -> date of the historical point it was
            measured against. Unbound horizons are absent.
        figures: Horizon -> measure -> Metric. Every configured horizon
            and every measure in GROWTH_MEASURES is present.
    """

    symbol: str
    end_date: date | None
    references: dict[int, date] = field(default_factory=dict)
    figures: dict[int, dict[str, Metric]] = field(default_factory=dict)

    def get(self, horizon: int, measure: str) -> Metric:
        return self.figures[horizon][measure]

    def display(self) -> dict[str, str]:
        """Flat display mapping, e.g. ``price_growth_10`` or ``so_change_3``."""
        result: dict[str, str] = {}
        for horizon in sorted(self.figures, reverse=True):
            for measure, metric in self.figures[horizon].items():
                result[display_key(measure, horizon)] = metric.text
        return result


def display_key(measure: str, horizon: int) -> str:
    """Column name used by the collection view for a growth figure."""
    if measure == SHARE_MEASURE:
        return f"so_change_{horizon}"
    return f"{measure}_growth_{horizon}"


def _unavailable(reason: UnavailableReason, config: FormatConfig) -> Metric:
    return Metric(value=None, text=config.unavailable, reason=reason)


def find_references(
    points: list[DataPoint],
    horizons: tuple[int, ...],
    on_duplicate_offset: str = "last",
    symbol: str = "",
) -> dict[int, DataPoint]:
    """Bind each horizon to the historical point exactly that many years back.

    Scans ``points[1:]`` once. Offsets are whole fiscal years between the
    end point and the candidate. Points without a date are skipped.

    Args:
        points: History sorted by date descending.
        horizons: Year offsets to look for.
        on_duplicate_offset: "last" keeps the last point scanned for a
            repeated offset; "error" raises.
        symbol: Ticker, used for messages.

    Returns:
        Horizon -> reference point, for horizons that were found.

    Raises:
        DuplicateOffsetError: On a repeated offset when
            on_duplicate_offset is "error".
    """
    if not points or points[0].date is None:
        return {}

    end_year = points[0].date.year
    wanted = set(horizons)
    references: dict[int, DataPoint] = {}

    for point in points[1:]:
        if point.date is None:
            logger.debug("%s: skipping undated point", symbol)
            continue
        offset = end_year - point.date.year
        if offset not in wanted:
            continue
        if offset in references:
            message = (
                f"{symbol}: points dated {references[offset].date} and "
                f"{point.date} both sit {offset} year(s) before {points[0].date}"
            )
            if on_duplicate_offset == "error":
                raise DuplicateOffsetError(message)
            logger.warning("%s; keeping %s", message, point.date)
        references[offset] = point

    return references


def _compound_growth(
    end: float | None,
    start: float | None,
    years: int,
    config: FormatConfig,
) -> Metric:
    """(end / start) ** (1 / years) - 1, shown as a whole percent.

    A non-positive start is unavailable. A negative end is unavailable
    beyond one year, where the fractional root has no real value; over a
    single year it is a plain ratio. An end of zero is a valid -100%.
    """
    if end is None or start is None:
        return _unavailable(UnavailableReason.MISSING_FIELD, config)
    if start <= 0 or (end < 0 and years != 1):
        return _unavailable(UnavailableReason.DEGENERATE_ARITHMETIC, config)

    if years == 1:
        rate = end / start - 1.0
    else:
        rate = (end / start) ** (1.0 / years) - 1.0
    if not math.isfinite(rate):
        return _unavailable(UnavailableReason.DEGENERATE_ARITHMETIC, config)
    return Metric(value=rate, text=formatting.percent(rate * 100.0, 0))


def _share_change(
    end: float | None,
    start: float | None,
    config: FormatConfig,
) -> Metric:
    """end - start, 1 dp, grouped."""
    if end is None or start is None:
        return _unavailable(UnavailableReason.MISSING_FIELD, config)
    change = end - start
    if not math.isfinite(change):
        return _unavailable(UnavailableReason.DEGENERATE_ARITHMETIC, config)
    return Metric(value=change, text=formatting.group_thousands(change, 1))


def _horizon_figures(
    end: DataPoint,
    start: DataPoint,
    years: int,
    config: FormatConfig,
) -> dict[str, Metric]:
    figures: dict[str, Metric] = {}
    for measure in CAGR_MEASURES:
        figures[measure] = _compound_growth(
            as_float(getattr(end, measure)),
            as_float(getattr(start, measure)),
            years,
            config,
        )
    figures[SHARE_MEASURE] = _share_change(
        as_float(end.shares_outstanding),
        as_float(start.shares_outstanding),
        config,
    )
    return figures


def _all_unavailable(
    reason: UnavailableReason, config: FormatConfig
) -> dict[str, Metric]:
    return {measure: _unavailable(reason, config) for measure in GROWTH_MEASURES}


def compute_growth(
    history: StockHistory,
    config: GrowthConfig | None = None,
    format_config: FormatConfig | None = None,
) -> GrowthResult:
    """Compute growth figures for every horizon of one stock.

    The history must already be sorted by date descending; it is not
    re-sorted here. Each (horizon, measure) figure is computed on its own,
    so a gap or a degenerate value at one horizon leaves the others intact.

    Args:
        history: Stock with its descending data points.
        config: Horizons and duplicate-offset policy.
        format_config: Display formatting.

    Returns:
        GrowthResult with a Metric for every configured horizon and measure.

    Raises:
        DuplicateOffsetError: Only when config.on_duplicate_offset is
            "error" and the data has a repeated offset.
    """
    if config is None:
        config = GrowthConfig()
    if format_config is None:
        format_config = FormatConfig()

    symbol = history.symbol
    points = history.points

    if not points:
        logger.warning("%s: empty history, growth unavailable", symbol)
        return GrowthResult(
            symbol=symbol,
            end_date=None,
            figures={
                h: _all_unavailable(UnavailableReason.EMPTY_HISTORY, format_config)
                for h in config.horizons
            },
        )

    end = points[0]
    if end.date is None:
        logger.warning("%s: most recent point has no date, growth unavailable", symbol)
        return GrowthResult(
            symbol=symbol,
            end_date=None,
            figures={
                h: _all_unavailable(UnavailableReason.MISSING_FIELD, format_config)
                for h in config.horizons
            },
        )

    references = find_references(
        points, config.horizons, config.on_duplicate_offset, symbol,
    )

    figures: dict[int, dict[str, Metric]] = {}
    for horizon in config.horizons:
        start = references.get(horizon)
        if start is None:
            figures[horizon] = _all_unavailable(
                UnavailableReason.NO_HISTORICAL_REFERENCE, format_config,
            )
            continue
        figures[horizon] = _horizon_figures(end, start, horizon, format_config)

    logger.debug(
        "%s: growth horizons bound %s of %s",
        symbol,
        sorted(references),
        list(config.horizons),
    )

    return GrowthResult(
        symbol=symbol,
        end_date=end.date,
        references={h: p.date for h, p in references.items() if p.date is not None},
        figures=figures,
    )
