"""CLI job to collect and score Google Places leads for one sector."""

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from leadmap.core.collector import CollectionPipeline
from leadmap.core.config import (
    DEEP_SEARCH_PRESETS,
    CollectorConfig,
    ConfigError,
    build_query,
    get_preset,
    get_settings,
    positive_int,
    require_api_key,
    validate_max_pages,
)
from leadmap.core.storage import SnapshotWriter, report_filename, write_report
from leadmap.models import Query
from leadmap.vendors.google_places import GooglePlacesProvider

logger = logging.getLogger(__name__)


def run_query_job(
    *,
    sector: Optional[str] = None,
    queries: Optional[Sequence[str]] = None,
    max_pages: Optional[int] = None,
    output: Optional[str] = None,
    require_city: bool = False,
    preset: Optional[str] = None,
) -> Path:
    """Collect one sector (optionally over several queries) into one report file.

    A ``preset`` supplies the sector, its query list and the report name;
    explicit ``sector``/``queries``/``output`` values take precedence.
    """
    settings = get_settings()
    api_key = require_api_key(settings)
    max_pages = validate_max_pages(settings.max_pages if max_pages is None else max_pages)

    texts: List[str] = [text.strip() for text in queries or [] if text and text.strip()]
    if preset:
        deep_search = get_preset(preset)
        sector = sector or deep_search.sector
        texts = texts or list(deep_search.queries(settings.city))
        output = output or report_filename(deep_search.output_stem, settings.city)

    sector = (sector or "").strip()
    if not sector:
        raise ValueError("Sector must not be empty")
    if not texts:
        texts = [build_query(sector, settings.city)]

    config = CollectorConfig.from_settings(settings, require_city_in_address=require_city)
    provider = GooglePlacesProvider(api_key, region=config.region, language=config.language)
    pipeline = CollectionPipeline(provider, config)

    filename = output or report_filename(sector, config.city)
    snapshot = SnapshotWriter(settings.output_dir, filename) if len(texts) > 1 else None

    logger.info("Collecting sector=%s with %d queries", sector, len(texts))
    report = pipeline.collect(
        [Query(text=text, sector=sector) for text in texts],
        max_pages=max_pages,
        snapshot=snapshot,
    )
    return write_report(report, settings.output_dir, filename)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collect Google Places leads for a sector")
    parser.add_argument("--sector", dest="sector", help="Sector label, e.g. 'hoteles'")
    parser.add_argument(
        "--preset",
        dest="preset",
        choices=sorted(DEEP_SEARCH_PRESETS),
        help="Run a built-in deep search (sector, queries and report name)",
    )
    parser.add_argument(
        "--query",
        dest="queries",
        action="append",
        default=[],
        help="Search query; repeat to run a deep search over several queries",
    )
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=positive_int,
        default=get_settings().max_pages,
        help="Maximum number of result pages per query",
    )
    parser.add_argument("--output", dest="output", help="Report filename inside the output directory")
    parser.add_argument(
        "--require-city",
        dest="require_city",
        action="store_true",
        help="Drop places whose address does not mention the configured city",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.sector and not args.preset:
        parser.error("one of --sector or --preset is required")

    try:
        path = run_query_job(
            sector=args.sector,
            queries=args.queries,
            max_pages=args.max_pages,
            output=args.output,
            require_city=args.require_city,
            preset=args.preset,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    logger.info("Report written to %s", path)


if __name__ == "__main__":
    main()
