"""CLI entry point for the collection view."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from portfolio.collection import enrich_collection, export_csv
from portfolio.config import CollectionConfig, GrowthConfig, StoreConfig
from portfolio.data import load_collection

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="portfolio",
        description="Collection metrics and growth rates",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    collection_parser = subparsers.add_parser(
        "collection", help="Enrich an owner's collection and export CSV"
    )
    collection_parser.add_argument(
        "--owner",
        required=True,
        help="Username owning the collection",
    )
    collection_parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="Record store path (default: from config)",
    )
    collection_parser.add_argument(
        "--output",
        type=Path,
        default=Path("output/collection.csv"),
        help="Output CSV path (default: output/collection.csv)",
    )
    collection_parser.add_argument(
        "--include-disabled",
        action="store_true",
        help="Include stocks toggled off by the owner",
    )
    collection_parser.add_argument(
        "--strict-offsets",
        action="store_true",
        help="Fail on two points at the same horizon offset "
        "(default: keep the last one)",
    )
    collection_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Enrich stocks on this many threads (default: sequential)",
    )
    collection_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> CollectionConfig:
    store = StoreConfig(include_disabled=args.include_disabled)
    if args.db_path is not None:
        store.db_path = args.db_path
    growth = GrowthConfig(
        on_duplicate_offset="error" if args.strict_offsets else "last",
    )
    return CollectionConfig(
        growth=growth, store=store, max_workers=args.workers,
    )


def run_collection(args: argparse.Namespace) -> None:
    """Execute the collection command.

    Args:
        args: Parsed CLI arguments.
    """
    config = _build_config(args)

    stocks = load_collection(args.owner, config.store)
    enriched = enrich_collection(stocks, config)
    export_csv(enriched, args.output)

    no_growth = sum(1 for e in enriched if e.growth.end_date is None)
    logger.info(
        "Results: %d stocks (%d without history), written to %s",
        len(enriched),
        no_growth,
        args.output,
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    args = _parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "collection":
        run_collection(args)
    else:
        logger.error("Unknown command: %s", args.command)
        sys.exit(1)


if __name__ == "__main__":
    main()
