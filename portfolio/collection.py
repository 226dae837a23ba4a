"""Collection enrichment: point metrics and growth for every stock.

Stocks are independent units of work. Within a stock the point metrics
and the growth figures are computed from the history as given; the
caller supplies it sorted newest first.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from portfolio.config import CollectionConfig
from portfolio.data.models import StockHistory
from portfolio.metrics.growth import GrowthResult, compute_growth
from portfolio.metrics.point import DerivedPoint, derive_point

logger = logging.getLogger(__name__)

_METADATA_COLUMNS = ("symbol", "company", "exchange", "note")


@dataclass
class EnrichedStock:
    """A stock with its display figures.

    Attributes:
        history: The input stock, unchanged.
        points: One DerivedPoint per history point, same order.
        growth: Horizon growth figures.
    """

    history: StockHistory
    points: list[DerivedPoint]
    growth: GrowthResult

    @property
    def symbol(self) -> str:
        return self.history.symbol


def enrich_stock(
    history: StockHistory, config: CollectionConfig | None = None
) -> EnrichedStock:
    """Derive point metrics and growth figures for one stock.

    Args:
        history: Stock with data points sorted by date descending.
        config: Collection configuration.

    Returns:
        EnrichedStock. An empty history yields no points and all growth
        figures unavailable.

    Raises:
        TypeError: If history is not a StockHistory.
    """
    if not isinstance(history, StockHistory):
        raise TypeError(
            f"Expected StockHistory, got {type(history).__name__}"
        )
    if config is None:
        config = CollectionConfig()

    points = [
        derive_point(point, config.formatting, history.symbol)
        for point in history.points
    ]
    growth = compute_growth(history, config.growth, config.formatting)
    return EnrichedStock(history=history, points=points, growth=growth)


def enrich_collection(
    stocks: list[StockHistory], config: CollectionConfig | None = None
) -> list[EnrichedStock]:
    """Enrich every stock in a collection.

    Runs sequentially unless config.max_workers > 1, in which case stocks
    are spread over a thread pool. Output order matches input order.

    Args:
        stocks: Stocks to enrich.
        config: Collection configuration.

    Returns:
        One EnrichedStock per input stock.
    """
    if config is None:
        config = CollectionConfig()

    workers = config.max_workers
    if workers is not None and workers > 1 and len(stocks) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            enriched = list(pool.map(lambda s: enrich_stock(s, config), stocks))
    else:
        enriched = [enrich_stock(stock, config) for stock in stocks]

    logger.info(
        "Enriched %d stocks (%d data points)",
        len(enriched),
        sum(len(e.points) for e in enriched),
    )
    return enriched


def collection_frame(enriched: list[EnrichedStock]) -> pd.DataFrame:
    """Flatten enriched stocks into one display row per data point.

    Stock-level growth columns are repeated on each of a stock's rows. A
    stock with no data points still gets one row carrying its metadata
    and growth columns.

    Args:
        enriched: Output of enrich_collection.

    Returns:
        DataFrame of display strings.
    """
    rows: list[dict[str, object]] = []
    for stock in enriched:
        base: dict[str, object] = {
            "symbol": stock.history.symbol,
            "company": stock.history.company,
            "exchange": stock.history.exchange,
            "note": stock.history.note,
        }
        growth = stock.growth.display()
        if not stock.points:
            rows.append({**base, **growth})
            continue
        for point in stock.points:
            rows.append({**base, **point.display(), **growth})

    frame = pd.DataFrame(rows)
    if frame.empty:
        frame = pd.DataFrame(columns=list(_METADATA_COLUMNS))
    return frame


def export_csv(enriched: list[EnrichedStock], output_path: Path) -> Path:
    """Write the collection view to CSV.

    Args:
        enriched: Output of enrich_collection.
        output_path: Destination file. Parent directories are created.

    Returns:
        The path written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame = collection_frame(enriched)
    frame.to_csv(output_path, index=False)
    logger.info("Exported %s (%d rows)", output_path, len(frame))
    return output_path
