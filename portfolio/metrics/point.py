"""Point-level metrics: formatted passthroughs and composite ratios.

Every figure is computed independently. A missing input or a zero
denominator blanks only the figures that use it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from typing import Callable

from portfolio import formatting
from portfolio.config import FormatConfig
from portfolio.data.models import DataPoint, Metric, UnavailableReason
from portfolio.metrics.values import as_float

logger = logging.getLogger(__name__)


@dataclass
class DerivedPoint:
    """Display figures for one data point.

    Attributes:
        yield_format: Dividend yield, percent.
        price_format: Share price with currency symbol.
        shares_outstanding_format: Shares outstanding, 2 dp, grouped.
        market_cap_format: Market cap, whole units, grouped.
        net_debt_format: Net debt, whole units, grouped.
        enterprise_value_format: Enterprise value, 1 dp, grouped.
        revenue_format: Revenue, whole units, grouped.
        aebitda_format: AEBITDA as stored, grouped.
        roe_format: Return on equity, 1 dp, percent.
        effective_tax_format: Effective tax rate, 1 dp, percent.
        fcf_format: Free cash flow, whole units, grouped.
        aebitda_at: AEBITDA margin x asset turnover (a return on assets
            proxy), 1 dp, percent.
        nd_aebitda: Net debt / AEBITDA, 2 dp, grouped.
        aebitda_percent: AEBITDA margin, 1 dp, percent.
        ev_aebitda: EV / AEBITDA multiple, 2 dp.
        aebitda_spice: aebitda_at / EV-AEBITDA multiple, 2 dp.
        roe_spice: ROE / EV-AEBITDA multiple, 2 dp.
        fcf_yield: FCF / market cap, whole percent.
        datestring: Snapshot date, e.g. "Jan 05, 2024".
    """

    yield_format: Metric
    price_format: Metric
    shares_outstanding_format: Metric
    market_cap_format: Metric
    net_debt_format: Metric
    enterprise_value_format: Metric
    revenue_format: Metric
    aebitda_format: Metric
    roe_format: Metric
    effective_tax_format: Metric
    fcf_format: Metric
    aebitda_at: Metric
    nd_aebitda: Metric
    aebitda_percent: Metric
    ev_aebitda: Metric
    aebitda_spice: Metric
    roe_spice: Metric
    fcf_yield: Metric
    datestring: Metric

    def display(self) -> dict[str, str]:
        """Field name -> display string."""
        return {f.name: getattr(self, f.name).text for f in fields(self)}

    def unavailable(self) -> dict[str, UnavailableReason]:
        """Field name -> reason, for figures that could not be produced."""
        result: dict[str, UnavailableReason] = {}
        for f in fields(self):
            metric: Metric = getattr(self, f.name)
            if metric.reason is not None:
                result[f.name] = metric.reason
        return result


@dataclass(frozen=True)
class _Calc:
    """Intermediate value that remembers why it is missing."""

    value: float | None
    reason: UnavailableReason | None = None


def _field(point: DataPoint, name: str) -> _Calc:
    value = as_float(getattr(point, name))
    if value is None:
        return _Calc(None, UnavailableReason.MISSING_FIELD)
    return _Calc(value)


def _first_reason(*calcs: _Calc) -> UnavailableReason | None:
    for calc in calcs:
        if calc.reason is not None:
            return calc.reason
        if calc.value is None:
            return UnavailableReason.MISSING_FIELD
    return None


def _divide(numerator: _Calc, denominator: _Calc) -> _Calc:
    """numerator / denominator. Zero over non-zero is a valid zero."""
    top, bottom = numerator.value, denominator.value
    if top is None or bottom is None:
        return _Calc(None, _first_reason(numerator, denominator))
    if bottom == 0:
        return _Calc(None, UnavailableReason.DEGENERATE_ARITHMETIC)
    result = top / bottom
    if not math.isfinite(result):
        return _Calc(None, UnavailableReason.DEGENERATE_ARITHMETIC)
    return _Calc(result)


def _multiply(left: _Calc, right: _Calc) -> _Calc:
    a, b = left.value, right.value
    if a is None or b is None:
        return _Calc(None, _first_reason(left, right))
    result = a * b
    if not math.isfinite(result):
        return _Calc(None, UnavailableReason.DEGENERATE_ARITHMETIC)
    return _Calc(result)


def _render(
    calc: _Calc,
    render: Callable[[float], str],
    config: FormatConfig,
) -> Metric:
    if calc.reason is not None or calc.value is None:
        return Metric(
            value=None,
            text=config.unavailable,
            reason=calc.reason or UnavailableReason.MISSING_FIELD,
        )
    return Metric(value=calc.value, text=render(calc.value))


def _grouped(decimals: int | None) -> Callable[[float], str]:
    return lambda v: formatting.group_thousands(v, decimals)


def _percent(decimals: int | None) -> Callable[[float], str]:
    return lambda v: formatting.percent(v, decimals)


def _date_metric(point: DataPoint, config: FormatConfig) -> Metric:
    if point.date is None:
        return Metric(
            value=None,
            text=config.unavailable,
            reason=UnavailableReason.MISSING_FIELD,
        )
    return Metric(
        value=None,
        text=formatting.format_date(point.date, config.date_format),
    )


def derive_point(
    point: DataPoint,
    config: FormatConfig | None = None,
    symbol: str = "",
) -> DerivedPoint:
    """Compute display figures for one data point.

    Never raises for missing or degenerate inputs; affected figures carry
    an UnavailableReason and the configured placeholder text.

    Args:
        point: Raw annual data point.
        config: Display formatting. Defaults to FormatConfig().
        symbol: Ticker, used only for log messages.

    Returns:
        DerivedPoint with one Metric per display field.
    """
    if config is None:
        config = FormatConfig()

    price = _field(point, "price")
    dividend_yield = _field(point, "yield_")
    shares = _field(point, "shares_outstanding")
    market_cap = _field(point, "market_cap")
    net_debt = _field(point, "net_debt")
    ev = _field(point, "enterprise_value")
    revenue = _field(point, "revenue")
    aebitda = _field(point, "aebitda")
    turnover = _field(point, "asset_turnover")
    roe = _field(point, "roe")
    tax = _field(point, "effective_tax")
    fcf = _field(point, "fcf")

    hundred = _Calc(100.0)
    margin = _divide(aebitda, revenue)
    margin_x_turnover = _multiply(_multiply(margin, turnover), hundred)
    ev_multiple = _divide(ev, aebitda)

    derived = DerivedPoint(
        yield_format=_render(dividend_yield, _percent(None), config),
        price_format=_render(
            price,
            lambda v: formatting.currency(
                v, config.price_decimals, config.currency_symbol,
            ),
            config,
        ),
        shares_outstanding_format=_render(shares, _grouped(2), config),
        market_cap_format=_render(market_cap, _grouped(0), config),
        net_debt_format=_render(net_debt, _grouped(0), config),
        enterprise_value_format=_render(ev, _grouped(1), config),
        revenue_format=_render(revenue, _grouped(0), config),
        aebitda_format=_render(aebitda, _grouped(None), config),
        roe_format=_render(roe, _percent(1), config),
        effective_tax_format=_render(tax, _percent(1), config),
        fcf_format=_render(fcf, _grouped(0), config),
        aebitda_at=_render(margin_x_turnover, _percent(1), config),
        nd_aebitda=_render(_divide(net_debt, aebitda), _grouped(2), config),
        aebitda_percent=_render(_multiply(margin, hundred), _percent(1), config),
        ev_aebitda=_render(
            ev_multiple, lambda v: formatting.number_text(v, 2), config,
        ),
        aebitda_spice=_render(
            _divide(margin_x_turnover, ev_multiple),
            lambda v: formatting.number_text(v, 2),
            config,
        ),
        roe_spice=_render(
            _divide(roe, ev_multiple),
            lambda v: formatting.number_text(v, 2),
            config,
        ),
        fcf_yield=_render(
            _multiply(_divide(fcf, market_cap), hundred), _percent(0), config,
        ),
        datestring=_date_metric(point, config),
    )

    missing = derived.unavailable()
    if missing:
        logger.debug(
            "%s %s: %d figure(s) unavailable: %s",
            symbol or "?",
            point.date,
            len(missing),
            ", ".join(sorted(missing)),
        )
    return derived
