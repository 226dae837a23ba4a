"""Tests for portfolio.metrics.growth."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from portfolio.config import GrowthConfig
from portfolio.data.models import DataPoint, StockHistory, UnavailableReason
from portfolio.metrics.growth import (
    GROWTH_MEASURES,
    DuplicateOffsetError,
    compute_growth,
    display_key,
    find_references,
)


def _point(year: int, month: int = 12, day: int = 31, **values: float | None) -> DataPoint:
    """Annual point with simple defaults for the growth measures."""
    defaults: dict[str, float | None] = {
        "price": 100.0,
        "revenue": 1000.0,
        "aebitda": 200.0,
        "fcf": 50.0,
        "shares_outstanding": 1000.0,
    }
    defaults.update(values)
    return DataPoint(date=date(year, month, day), **defaults)  # type: ignore[arg-type]


def _full_history() -> StockHistory:
    """Most recent point 2024 with a reference at every horizon."""
    return StockHistory(
        symbol="AAA",
        points=[
            _point(2024, price=100.0, revenue=1331.0, shares_outstanding=1000.0),
            _point(2023, price=80.0, revenue=1210.0, shares_outstanding=1100.25),
            _point(2022, price=70.0),
            _point(2021, price=64.0, revenue=1000.0),
            _point(2019, price=50.0),
            _point(2014, price=50.0),
        ],
    )


class TestCompoundGrowth:
    """Compound annual growth rates between the end point and a reference."""

    def test_ten_year_price(self) -> None:
        result = compute_growth(_full_history())
        metric = result.get(10, "price")

        # (100 / 50) ** (1 / 10) - 1 = 7.18%
        assert metric.value == pytest.approx(2 ** 0.1 - 1)
        assert metric.text == "7%"

    def test_one_year_price(self) -> None:
        result = compute_growth(_full_history())
        assert result.get(1, "price").text == "25%"

    def test_three_year_revenue(self) -> None:
        result = compute_growth(_full_history())
        # 1331 / 1000 = 1.1 ** 3
        assert result.get(3, "revenue").value == pytest.approx(0.1)
        assert result.get(3, "revenue").text == "10%"

    def test_flat_measure_is_zero(self) -> None:
        result = compute_growth(_full_history())
        assert result.get(5, "fcf").text == "0%"

    def test_decline(self) -> None:
        history = StockHistory(
            symbol="DEC",
            points=[_point(2024, price=50.0), _point(2023, price=100.0)],
        )
        assert compute_growth(history).get(1, "price").text == "-50%"

    def test_year_only_matching(self) -> None:
        # January 2024 vs December 2023 is a one-year offset.
        history = StockHistory(
            symbol="JAN",
            points=[_point(2024, 1, 15, price=110.0), _point(2023, 12, 31)],
        )
        result = compute_growth(history)
        assert result.references == {1: date(2023, 12, 31)}
        assert result.get(1, "price").text == "10%"


class TestShareChange:
    def test_absolute_change_one_decimal(self) -> None:
        result = compute_growth(_full_history())
        metric = result.get(1, "shares_outstanding")

        # 1000 - 1100.25 = -100.25, half away from zero
        assert metric.value == pytest.approx(-100.25)
        assert metric.text == "-100.3"

    def test_grouped(self) -> None:
        history = StockHistory(
            symbol="BIG",
            points=[
                _point(2024, shares_outstanding=5_000_000.0),
                _point(2023, shares_outstanding=1_000_000.0),
            ],
        )
        assert compute_growth(history).get(1, "shares_outstanding").text == "4,000,000"

    def test_missing_shares(self) -> None:
        history = StockHistory(
            symbol="MIS",
            points=[_point(2024), _point(2023, shares_outstanding=None)],
        )
        metric = compute_growth(history).get(1, "shares_outstanding")
        assert metric.reason is UnavailableReason.MISSING_FIELD


class TestUnavailableHorizons:
    def test_missing_ten_year_point(self) -> None:
        history = _full_history()
        history.points = [p for p in history.points if p.date.year != 2014]  # type: ignore[union-attr]
        result = compute_growth(history)

        for measure in GROWTH_MEASURES:
            metric = result.get(10, measure)
            assert metric.text == "N/A"
            assert metric.reason is UnavailableReason.NO_HISTORICAL_REFERENCE
        assert result.get(5, "price").available
        assert result.get(3, "price").available
        assert result.get(1, "price").available

    def test_single_point(self) -> None:
        history = StockHistory(symbol="ONE", points=[_point(2024)])
        result = compute_growth(history)

        assert result.end_date == date(2024, 12, 31)
        assert result.references == {}
        for horizon in (1, 3, 5, 10):
            for measure in GROWTH_MEASURES:
                assert result.get(horizon, measure).reason is (
                    UnavailableReason.NO_HISTORICAL_REFERENCE
                )

    def test_empty_history(self) -> None:
        result = compute_growth(StockHistory(symbol="NIL"))

        assert result.end_date is None
        assert set(result.figures) == {1, 3, 5, 10}
        for horizon in result.figures:
            for measure in GROWTH_MEASURES:
                metric = result.get(horizon, measure)
                assert metric.reason is UnavailableReason.EMPTY_HISTORY
                assert metric.value is None

    def test_undated_end_point(self) -> None:
        history = StockHistory(
            symbol="UND",
            points=[DataPoint(date=None, price=1.0), _point(2023)],
        )
        result = compute_growth(history)
        assert result.get(1, "price").reason is UnavailableReason.MISSING_FIELD

    def test_undated_historical_point_skipped(self) -> None:
        history = StockHistory(
            symbol="SKP",
            points=[_point(2024), DataPoint(date=None, price=1.0), _point(2023)],
        )
        result = compute_growth(history)
        assert result.references == {1: date(2023, 12, 31)}


class TestDegenerateValues:
    def _two_points(self, end: float | None, start: float | None) -> StockHistory:
        return StockHistory(
            symbol="DEG",
            points=[_point(2024, fcf=end), _point(2021, fcf=start)],
        )

    def test_zero_start(self) -> None:
        metric = compute_growth(self._two_points(50.0, 0.0)).get(3, "fcf")
        assert metric.reason is UnavailableReason.DEGENERATE_ARITHMETIC
        assert metric.text == "N/A"

    def test_negative_start(self) -> None:
        metric = compute_growth(self._two_points(50.0, -10.0)).get(3, "fcf")
        assert metric.reason is UnavailableReason.DEGENERATE_ARITHMETIC

    def test_negative_end(self) -> None:
        metric = compute_growth(self._two_points(-10.0, 50.0)).get(3, "fcf")
        assert metric.reason is UnavailableReason.DEGENERATE_ARITHMETIC

    def test_negative_end_over_one_year(self) -> None:
        history = StockHistory(
            symbol="NEG",
            points=[_point(2024, fcf=-100.0), _point(2023, fcf=50.0)],
        )
        metric = compute_growth(history).get(1, "fcf")

        # -100 / 50 - 1 = -300%
        assert metric.available
        assert metric.value == pytest.approx(-3.0)
        assert metric.text == "-300%"

    def test_negative_end_over_one_year_negative_start(self) -> None:
        history = StockHistory(
            symbol="NEG",
            points=[_point(2024, fcf=-100.0), _point(2023, fcf=-50.0)],
        )
        metric = compute_growth(history).get(1, "fcf")
        assert metric.reason is UnavailableReason.DEGENERATE_ARITHMETIC

    def test_zero_end_is_total_loss(self) -> None:
        metric = compute_growth(self._two_points(0.0, 50.0)).get(3, "fcf")
        assert metric.text == "-100%"

    def test_missing_value(self) -> None:
        metric = compute_growth(self._two_points(None, 50.0)).get(3, "fcf")
        assert metric.reason is UnavailableReason.MISSING_FIELD

    def test_degenerate_measure_leaves_siblings(self) -> None:
        result = compute_growth(self._two_points(50.0, 0.0))
        assert result.get(3, "price").text == "0%"
        assert result.get(3, "shares_outstanding").text == "0"


class TestHorizonIndependence:
    def test_removing_one_reference_changes_only_that_horizon(self) -> None:
        full = compute_growth(_full_history())

        history = _full_history()
        history.points = [p for p in history.points if p.date.year != 2019]  # type: ignore[union-attr]
        partial = compute_growth(history)

        for horizon in (1, 3, 10):
            assert partial.figures[horizon] == full.figures[horizon]
        assert partial.figures[5] != full.figures[5]
        assert not partial.get(5, "price").available


class TestOrdering:
    def test_reversed_history_changes_result(self) -> None:
        history = _full_history()
        reversed_history = StockHistory(
            symbol="AAA", points=list(reversed(history.points)),
        )

        forward = compute_growth(history)
        backward = compute_growth(reversed_history)

        assert backward.end_date == date(2014, 12, 31)
        assert backward.display() != forward.display()
        # Every other point is newer than 2014, so no horizon binds.
        assert backward.references == {}

    def test_engine_does_not_resort(self) -> None:
        history = _full_history()
        before = list(history.points)
        compute_growth(history)
        assert history.points == before


class TestDuplicateOffsets:
    def _history(self) -> StockHistory:
        return StockHistory(
            symbol="DUP",
            points=[
                _point(2024, price=100.0),
                _point(2021, 12, 31, price=80.0),
                _point(2021, 1, 1, price=64.0),
            ],
        )

    def test_last_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="portfolio.metrics.growth"):
            result = compute_growth(self._history())

        # (100 / 64) ** (1 / 3) - 1 = 16.0%
        assert result.get(3, "price").text == "16%"
        assert result.references[3] == date(2021, 1, 1)
        assert "both sit 3 year(s)" in caplog.text

    def test_error_policy(self) -> None:
        config = GrowthConfig(on_duplicate_offset="error")
        with pytest.raises(DuplicateOffsetError, match="DUP"):
            compute_growth(self._history(), config)

    def test_error_is_value_error(self) -> None:
        assert issubclass(DuplicateOffsetError, ValueError)


class TestFindReferences:
    def test_ignores_offsets_outside_horizons(self) -> None:
        points = [_point(2024), _point(2022), _point(2020), _point(2012)]
        assert find_references(points, (1, 3, 5, 10)) == {}

    def test_end_point_never_its_own_reference(self) -> None:
        points = [_point(2024), _point(2024, 1, 1)]
        assert find_references(points, (1,)) == {}

    def test_empty(self) -> None:
        assert find_references([], (1,)) == {}


class TestConfigAndDisplay:
    def test_custom_horizons(self) -> None:
        history = StockHistory(
            symbol="CUS",
            points=[_point(2024, price=121.0), _point(2022, price=100.0)],
        )
        result = compute_growth(history, GrowthConfig(horizons=(2,)))

        assert set(result.figures) == {2}
        assert result.get(2, "price").text == "10%"

    def test_display_keys(self) -> None:
        display = compute_growth(_full_history()).display()

        assert len(display) == 4 * 5
        assert display["price_growth_10"] == "7%"
        assert display["so_change_1"] == "-100.3"
        assert "fcf_growth_5" in display

    def test_display_key(self) -> None:
        assert display_key("shares_outstanding", 3) == "so_change_3"
        assert display_key("aebitda", 5) == "aebitda_growth_5"

    def test_deterministic(self) -> None:
        assert compute_growth(_full_history()) == compute_growth(_full_history())
