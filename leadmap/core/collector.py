"""Paginated Places collection with cross-query deduplication and scoring."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from leadmap.core.config import CollectorConfig
from leadmap.core.scoring import score_business
from leadmap.etl.transform import to_scored_business
from leadmap.models import (
    Candidate,
    DelayPolicy,
    PlacesProvider,
    Query,
    RunMeta,
    RunReport,
    RunStats,
    ScoredBusiness,
    SearchPage,
)
from leadmap.vendors.google_places import SUCCESS_STATUSES, PlacesSearchError

logger = logging.getLogger(__name__)

IN_PROGRESS = "IN_PROGRESS"
MULTIPLE_QUERIES = "MULTIPLE (Deep Search)"
HIGH_RATING_MIN = 4.5

SleepFn = Callable[[float], None]
ClockFn = Callable[[], datetime]
SnapshotFn = Callable[[RunReport], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class RunSummary:
    """Counters describing what one run fetched and skipped."""

    queries: int = 0
    failed_queries: int = 0
    pages: int = 0
    duplicates: int = 0
    detail_failures: int = 0
    filtered: int = 0
    collected: int = 0


def compute_stats(businesses: Iterable[ScoredBusiness]) -> RunStats:
    stats = RunStats()
    for business in businesses:
        stats.total += 1
        if business.has_website:
            stats.with_website += 1
        else:
            stats.without_website += 1
        if business.phone:
            stats.with_phone += 1
        if business.rating is not None and business.rating >= HIGH_RATING_MIN:
            stats.high_rating += 1
    return stats


def build_report(
    businesses: Sequence[ScoredBusiness],
    *,
    city: str,
    country: str,
    sector: Optional[str],
    search_query: str,
    collected_at: datetime,
) -> RunReport:
    businesses = list(businesses)
    meta = RunMeta(
        city=city,
        country=country,
        sector=sector,
        search_query=search_query,
        collected_at=format_timestamp(collected_at),
        total_results=len(businesses),
    )
    return RunReport(meta=meta, stats=compute_stats(businesses), businesses=businesses)


class CollectionPipeline:
    """Runs queries against a places provider and aggregates a RunReport.

    Queries, pages and detail fetches are processed strictly one after the
    other: page tokens only become valid after a short delay and the provider
    rate limits detail lookups. Provider failures never escape ``collect``;
    a failed page ends its query and a failed detail fetch skips its place.
    """

    def __init__(
        self,
        provider: PlacesProvider,
        config: Optional[CollectorConfig] = None,
        *,
        sleep: Optional[SleepFn] = None,
        now: ClockFn = utc_now,
    ) -> None:
        self.provider = provider
        self.config = config or CollectorConfig()
        self._sleep = sleep or time.sleep
        self._now = now
        self.last_summary = RunSummary()

    def collect(
        self,
        queries: Sequence[Query],
        *,
        max_pages: Optional[int] = None,
        delays: Optional[DelayPolicy] = None,
        sector_label: Optional[str] = None,
        snapshot: Optional[SnapshotFn] = None,
    ) -> RunReport:
        queries = list(queries)
        max_pages = self.config.max_pages if max_pages is None else max_pages
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        delays = delays or self.config.delays
        if sector_label is None and queries:
            sector_label = queries[0].sector

        summary = RunSummary(queries=len(queries))
        self.last_summary = summary
        accumulator: Dict[str, ScoredBusiness] = {}

        for index, query in enumerate(queries):
            logger.info("--- Running query %d/%d: %r ---", index + 1, len(queries), query.text)
            self._collect_query(query, accumulator, summary, max_pages=max_pages, delays=delays)
            logger.info("Total unique so far: %d", len(accumulator))

            if snapshot is not None:
                self._write_snapshot(snapshot, accumulator, sector_label)
            if index < len(queries) - 1:
                self._sleep(delays.inter_query)

        summary.collected = len(accumulator)
        logger.info(
            "Collection complete: unique=%d pages=%d duplicates=%d detail_failures=%d failed_queries=%d",
            summary.collected,
            summary.pages,
            summary.duplicates,
            summary.detail_failures,
            summary.failed_queries,
        )
        return build_report(
            list(accumulator.values()),
            city=self.config.city,
            country=self.config.country,
            sector=sector_label,
            search_query=self._describe_queries(queries),
            collected_at=self._now(),
        )

    def _collect_query(
        self,
        query: Query,
        accumulator: Dict[str, ScoredBusiness],
        summary: RunSummary,
        *,
        max_pages: int,
        delays: DelayPolicy,
    ) -> None:
        page_count = 0
        page_token: Optional[str] = None

        while True:
            page_count += 1
            if page_count > 1:
                logger.debug("Waiting %.1fs for next page token to activate", delays.inter_page)
                self._sleep(delays.inter_page)

            try:
                page = self._fetch_page(query, page_token)
            except Exception as exc:  # noqa: BLE001
                logger.error("Search failed for %r on page %d: %s", query.text, page_count, exc)
                summary.failed_queries += 1
                return

            summary.pages += 1
            self._process_page(query, page.candidates, accumulator, summary, page_count, delays)

            page_token = page.next_page_token
            if not page_token or page_count >= max_pages:
                return

    def _fetch_page(self, query: Query, page_token: Optional[str]) -> SearchPage:
        page = self.provider.search(query, page_token)
        if page.status not in SUCCESS_STATUSES:
            raise PlacesSearchError(page.status, page.error_message)
        return page

    def _process_page(
        self,
        query: Query,
        candidates: List[Candidate],
        accumulator: Dict[str, ScoredBusiness],
        summary: RunSummary,
        page_number: int,
        delays: DelayPolicy,
    ) -> None:
        added = duplicates = failures = 0
        for candidate in candidates:
            if candidate.place_id in accumulator:
                logger.debug("Duplicate place %s", candidate.place_id)
                duplicates += 1
                continue

            business = self._enrich(query, candidate, summary)
            if business is None:
                failures += 1
            else:
                accumulator[candidate.place_id] = business
                added += 1
            self._sleep(delays.inter_item)

        summary.duplicates += duplicates
        logger.info(
            "Page %d: found=%d new=%d duplicates=%d skipped=%d",
            page_number,
            len(candidates),
            added,
            duplicates,
            failures,
        )

    def _enrich(self, query: Query, candidate: Candidate, summary: RunSummary) -> Optional[ScoredBusiness]:
        try:
            details = self.provider.details(candidate.place_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to fetch details for %s: %s", candidate.place_id, exc)
            details = None

        if details is None:
            logger.warning("No details for %s; skipping", candidate.place_id)
            summary.detail_failures += 1
            return None

        if self.config.require_city_in_address and self.config.city not in (details.address or ""):
            logger.debug("Skipping %s outside %s: %s", candidate.place_id, self.config.city, details.address)
            summary.filtered += 1
            return None

        result = score_business(details, query.sector, self.config.high_yield_sectors)
        return to_scored_business(candidate, details, result, category=query.sector, query=query.text)

    def _write_snapshot(
        self,
        snapshot: SnapshotFn,
        accumulator: Dict[str, ScoredBusiness],
        sector_label: Optional[str],
    ) -> None:
        report = build_report(
            list(accumulator.values()),
            city=self.config.city,
            country=self.config.country,
            sector=sector_label,
            search_query=IN_PROGRESS,
            collected_at=self._now(),
        )
        try:
            snapshot(report)
        except OSError as exc:
            logger.error("Failed to write intermediate snapshot: %s", exc)

    @staticmethod
    def _describe_queries(queries: Sequence[Query]) -> str:
        if len(queries) == 1:
            return queries[0].text
        return MULTIPLE_QUERIES
