import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import partial

from filmfetch.core.errors import SKIPPABLE_ERRORS, redact_url
from filmfetch.core.pool import WorkerPool
from filmfetch.core.settings import Settings
from filmfetch.models.movie import MovieRecord
from filmfetch.services.http_client import FetchClient
from filmfetch.services.page_parser import PageParser, ParsedPage
from filmfetch.services.tmdb_endpoints import CatalogEndpoints

logger = logging.getLogger(__name__)


@dataclass
class PageOutcome:
    year: int
    page: int
    records: list[MovieRecord] = field(default_factory=list)
    total_pages: int | None = None
    failed: bool = False


@dataclass
class DiscoveryStats:
    pages_requested: int = 0
    pages_failed: int = 0
    pages_empty: int = 0
    records: int = 0
    duplicates: int = 0


class DiscoveryPhase:
    def __init__(
        self,
        settings: Settings,
        fetch_client: FetchClient,
        pool: WorkerPool,
        endpoints: CatalogEndpoints,
        parser: PageParser | None = None,
    ):
        self.settings = settings
        self.fetch_client = fetch_client
        self.pool = pool
        self.endpoints = endpoints
        self.parser = parser or PageParser()
        self.stats = DiscoveryStats()

    async def _fetch_page(self, year: int, page: int) -> PageOutcome:
        url = self.endpoints.discover_url(year, page)
        try:
            body = await self.fetch_client.fetch(url)
            parsed = self.parser.parse_page(body, url=url)
        except SKIPPABLE_ERRORS as exc:
            logger.warning(
                "Discovery page skipped",
                extra={"year": year, "page": page, "url": redact_url(url), "error": exc.to_dict()},
            )
            return PageOutcome(year=year, page=page, failed=True)
        return PageOutcome(year=year, page=page, records=parsed.records, total_pages=parsed.total_pages)

    def _remaining_pages(self, first: PageOutcome) -> range:
        ceiling = self.settings.discovery_page_ceiling
        if first.failed:
            return range(2, ceiling + 1)
        if not first.records:
            return range(0)
        if first.total_pages is not None:
            return range(2, min(first.total_pages, ceiling) + 1)
        return range(2, ceiling + 1)

    async def discover_year(self, year: int, first_page: ParsedPage | None = None) -> list[PageOutcome]:
        fetch = partial(self._fetch_page, year)
        first: PageOutcome | None = None
        if first_page is not None:
            first = PageOutcome(year=year, page=1, records=first_page.records, total_pages=first_page.total_pages)

        if not self.settings.discovery_use_total_pages:
            ceiling = self.settings.discovery_page_ceiling
            if first is None:
                return await self.pool.run_all(fetch, range(1, ceiling + 1))
            return [first, *await self.pool.run_all(fetch, range(2, ceiling + 1))]

        # page 1 tells us whether the year has anything at all and how many pages exist
        if first is None:
            first = await self.pool.submit(fetch, 1)
        remaining = self._remaining_pages(first)
        if first.failed:
            logger.info("Page 1 unavailable, submitting every page up to the ceiling", extra={"year": year})
        return [first, *await self.pool.run_all(fetch, remaining)]

    async def run(self, years: Iterable[int], first_pages: dict[int, ParsedPage] | None = None) -> list[MovieRecord]:
        """Discover every year in order. ``first_pages`` holds already fetched page 1 results by year."""
        self.stats = DiscoveryStats()
        discovered: dict[int, MovieRecord] = {}
        first_pages = first_pages or {}

        for year in years:
            outcomes = await self.discover_year(year, first_pages.get(year))
            year_records = 0
            for outcome in sorted(outcomes, key=lambda o: o.page):
                self.stats.pages_requested += 1
                if outcome.failed:
                    self.stats.pages_failed += 1
                    continue
                if not outcome.records:
                    self.stats.pages_empty += 1
                    continue
                for record in outcome.records:
                    if record.external_id in discovered:
                        self.stats.duplicates += 1
                        continue
                    discovered[record.external_id] = record
                    year_records += 1

            logger.info(
                "Discovery finished year",
                extra={
                    "year": year,
                    "pages": len(outcomes),
                    "new_records": year_records,
                    "total_records": len(discovered),
                },
            )

        self.stats.records = len(discovered)
        logger.info(
            "Discovery phase completed",
            extra={
                "pages_requested": self.stats.pages_requested,
                "pages_failed": self.stats.pages_failed,
                "pages_empty": self.stats.pages_empty,
                "records": self.stats.records,
                "duplicates": self.stats.duplicates,
            },
        )
        return list(discovered.values())
