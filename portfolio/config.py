"""Collection configuration dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Look-back periods (years) for growth figures.
DEFAULT_HORIZONS: tuple[int, ...] = (1, 3, 5, 10)

DUPLICATE_OFFSET_POLICIES: tuple[str, ...] = ("last", "error")


@dataclass
class FormatConfig:
    """Display formatting for derived fields."""

    currency_symbol: str = "$"
    unavailable: str = "N/A"
    date_format: str = "%b %d, %Y"
    price_decimals: int = 2


@dataclass
class GrowthConfig:
    """Horizon growth parameters.

    Attributes:
        horizons: Year offsets from the most recent point to measure
            growth over.
        on_duplicate_offset: What to do when two historical points share
            a horizon offset. "last" keeps the last one scanned, "error"
            raises DuplicateOffsetError.
    """

    horizons: tuple[int, ...] = DEFAULT_HORIZONS
    on_duplicate_offset: str = "last"

    def __post_init__(self) -> None:
        if self.on_duplicate_offset not in DUPLICATE_OFFSET_POLICIES:
            raise ValueError(
                f"Invalid on_duplicate_offset {self.on_duplicate_offset!r}. "
                f"Must be one of {DUPLICATE_OFFSET_POLICIES}."
            )
        if not self.horizons or any(h <= 0 for h in self.horizons):
            raise ValueError(
                f"Horizons must be positive years, got {self.horizons}"
            )
        if len(set(self.horizons)) != len(self.horizons):
            raise ValueError(f"Duplicate horizons: {self.horizons}")


@dataclass
class StoreConfig:
    """Record store location."""

    db_path: Path = Path("data/collection.db")
    include_disabled: bool = False


@dataclass
class CollectionConfig:
    """Top-level configuration for enriching a collection."""

    formatting: FormatConfig = field(default_factory=FormatConfig)
    growth: GrowthConfig = field(default_factory=GrowthConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    max_workers: int | None = None
