"""Record store loading (read-only SQLite, explicit column selects)."""

from __future__ import annotations

import logging
import sqlite3

import numpy as np
import pandas as pd

from portfolio.config import StoreConfig
from portfolio.data.models import RAW_FIELDS, DataPoint, StockHistory

logger = logging.getLogger(__name__)

# Column mappings: record store -> DataPoint attribute
_STOCKDATA_COLUMNS = {
    "price": "price",
    "yield": "yield_",
    "shares_outstanding": "shares_outstanding",
    "market_cap": "market_cap",
    "net_debt": "net_debt",
    "enterprise_value": "enterprise_value",
    "revenue": "revenue",
    "aebitda": "aebitda",
    "asset_turnover": "asset_turnover",
    "roe": "roe",
    "effective_tax": "effective_tax",
    "fcf": "fcf",
}

REQUIRED_COLUMNS: frozenset[str] = frozenset({"symbol", "date"})


def _connect(config: StoreConfig) -> sqlite3.Connection:
    """Open a read-only connection to the record store."""
    return sqlite3.connect(f"file:{config.db_path}?mode=ro", uri=True)


def _optional_text(value: object) -> str:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return ""
    return str(value)


def _to_point(row: pd.Series) -> DataPoint:
    date_value = row["date"]
    point_date = None if pd.isna(date_value) else pd.Timestamp(date_value).date()
    values: dict[str, float | None] = {}
    for name in RAW_FIELDS:
        raw = row.get(name)
        values[name] = None if raw is None or pd.isna(raw) else float(raw)
    return DataPoint(date=point_date, **values)


def _is_placeholder(point: DataPoint) -> bool:
    """Row produced by the outer join for a stock with no data points."""
    return point.date is None and all(
        getattr(point, name) is None for name in RAW_FIELDS
    )


def histories_from_frame(frame: pd.DataFrame) -> list[StockHistory]:
    """Group a flat record frame into per-stock histories.

    One row per (symbol, date). Raw numeric columns may use either store
    names (``yield``) or attribute names (``yield_``); any that are absent
    are treated as missing. Non-numeric and non-finite values become
    missing. Each history is sorted by date descending, undated rows
    last. Stocks keep their first-seen order.

    Args:
        frame: Record frame with at least ``symbol`` and ``date`` columns.
            Optional metadata columns: company, exchange, note, enabled.

    Returns:
        One StockHistory per distinct symbol.

    Raises:
        ValueError: If required columns are missing.
    """
    missing = REQUIRED_COLUMNS - set(frame.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")

    df = frame.rename(columns=_STOCKDATA_COLUMNS).copy()
    for name in RAW_FIELDS:
        if name in df.columns:
            df[name] = pd.to_numeric(df[name], errors="coerce")
            df[name] = df[name].replace([np.inf, -np.inf], np.nan)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")

    histories: list[StockHistory] = []
    for symbol, group in df.groupby("symbol", sort=False):
        group = group.sort_values("date", ascending=False, na_position="last")
        first = group.iloc[0]
        enabled = first.get("enabled", True)
        history = StockHistory(
            symbol=str(symbol),
            points=[_to_point(row) for _, row in group.iterrows()],
            company=_optional_text(first.get("company")),
            exchange=_optional_text(first.get("exchange")),
            note=_optional_text(first.get("note")),
            enabled=True if pd.isna(enabled) else bool(enabled),
        )
        history.points = [p for p in history.points if not _is_placeholder(p)]
        histories.append(history)

    return histories


def load_collection(owner: str, config: StoreConfig) -> list[StockHistory]:
    """Load one owner's tracked stocks with their annual data points.

    Stocks without any data points are still returned, with an empty
    history. Disabled stocks are skipped unless config.include_disabled.

    Args:
        owner: Username owning the collection.
        config: Store configuration (provides db_path).

    Returns:
        StockHistory list sorted by symbol, points newest first.
    """
    data_columns = ", ".join(f"d.{col}" for col in _STOCKDATA_COLUMNS)
    query = f"""
        SELECT s.symbol, s.company, s.exchange, s.note, s.enabled,
               d.date, {data_columns}
        FROM stocks s
        LEFT JOIN stockdata d ON d.stock_id = s.stock_id
        WHERE s.username = ?
        ORDER BY s.symbol, d.date DESC
    """

    conn = _connect(config)
    try:
        frame = pd.read_sql_query(query, conn, params=(owner,))
    finally:
        conn.close()

    histories = histories_from_frame(frame)
    if not config.include_disabled:
        skipped = [h.symbol for h in histories if not h.enabled]
        if skipped:
            logger.info("%s: skipping disabled stocks %s", owner, ", ".join(skipped))
        histories = [h for h in histories if h.enabled]

    logger.info(
        "%s: loaded %d stocks, %d data points",
        owner,
        len(histories),
        sum(len(h.points) for h in histories),
    )
    return histories
