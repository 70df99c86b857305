"""CLI job that collects every configured sector into its own report."""

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from leadmap.core.collector import CollectionPipeline
from leadmap.core.config import (
    CollectorConfig,
    ConfigError,
    build_query,
    get_settings,
    positive_int,
    require_api_key,
    validate_max_pages,
)
from leadmap.core.storage import write_report
from leadmap.models import Query
from leadmap.vendors.google_places import GooglePlacesProvider

logger = logging.getLogger(__name__)


def run_batch_job(sectors: Optional[Sequence[str]] = None, max_pages: Optional[int] = None) -> List[Path]:
    settings = get_settings()
    api_key = require_api_key(settings)
    max_pages = validate_max_pages(settings.max_pages if max_pages is None else max_pages)

    config = CollectorConfig.from_settings(settings)
    selected = list(sectors) if sectors else list(config.sectors)
    provider = GooglePlacesProvider(api_key, region=config.region, language=config.language)
    pipeline = CollectionPipeline(provider, config)

    written: List[Path] = []
    for index, sector in enumerate(selected):
        query = Query(text=build_query(sector, config.city), sector=sector)
        logger.info("--- Processing sector: %s (%r) ---", sector, query.text)
        report = pipeline.collect([query], max_pages=max_pages)
        try:
            written.append(write_report(report, settings.output_dir))
        except OSError as exc:
            logger.error("Failed to save report for sector %s: %s", sector, exc)

        if index < len(selected) - 1:
            time.sleep(config.delays.inter_query)

    logger.info("Batch collection complete: %d/%d reports written", len(written), len(selected))
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collect Google Places leads for every configured sector")
    parser.add_argument(
        "--sector",
        dest="sectors",
        action="append",
        default=[],
        help="Restrict the batch to this sector; repeatable",
    )
    parser.add_argument(
        "--max-pages",
        dest="max_pages",
        type=positive_int,
        default=get_settings().max_pages,
        help="Maximum number of result pages per sector",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    args = build_parser().parse_args(argv)

    try:
        run_batch_job(sectors=args.sectors, max_pages=args.max_pages)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
