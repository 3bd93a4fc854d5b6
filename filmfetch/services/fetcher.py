import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from datetime import date

from filmfetch.core.errors import redact_url
from filmfetch.core.logging import log_context
from filmfetch.core.pool import WorkerPool
from filmfetch.core.settings import Settings
from filmfetch.models.ingest import YearRange
from filmfetch.models.movie import MovieRecord
from filmfetch.services.discovery import DiscoveryPhase
from filmfetch.services.enrichment import EnrichmentPhase
from filmfetch.services.genre_catalog import GenreCatalog
from filmfetch.services.http_client import FetchClient
from filmfetch.services.page_parser import ParsedPage
from filmfetch.services.tmdb_endpoints import CatalogEndpoints

logger = logging.getLogger(__name__)


class MovieFetcher:
    """Runs discovery, a cool-down pause, enrichment and genre translation in order.

    Only fatal errors escape ``fetch_movies``: configuration problems, a failed
    preflight call, or a worker pool that cannot take work. Page and record
    failures are absorbed by the phases and show up in their logged summaries.
    """

    def __init__(
        self,
        settings: Settings,
        fetch_client: FetchClient,
        pool: WorkerPool,
        catalog: GenreCatalog,
        endpoints: CatalogEndpoints | None = None,
        discovery: DiscoveryPhase | None = None,
        enrichment: EnrichmentPhase | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.fetch_client = fetch_client
        self.pool = pool
        self.catalog = catalog
        self.endpoints = endpoints or CatalogEndpoints(settings)
        self.discovery = discovery or DiscoveryPhase(settings, fetch_client, pool, self.endpoints)
        self.enrichment = enrichment or EnrichmentPhase(settings, fetch_client, pool, self.endpoints, sleep=sleep)
        self._sleep = sleep

    def default_year_range(self, today: date | None = None) -> YearRange:
        current_year = (today or date.today()).year
        return YearRange(start_year=current_year - self.settings.discovery_year_span, end_year=current_year)

    async def preflight(self, year: int) -> ParsedPage:
        # outside the per-page loop, so transport and upstream errors are fatal here
        url = self.endpoints.discover_url(year, 1)
        body = await self.fetch_client.fetch(url)
        parsed = self.discovery.parser.parse_page(body, url=url)
        logger.info(
            "Preflight check passed",
            extra={"url": redact_url(url), "results": len(parsed.records), "total_pages": parsed.total_pages},
        )
        return parsed

    async def fetch_movies(self, year_range: YearRange | None = None) -> list[MovieRecord]:
        with log_context(run_id=uuid.uuid4().hex[:12]):
            return await self._fetch_movies(year_range or self.default_year_range())

    async def _fetch_movies(self, years: YearRange) -> list[MovieRecord]:
        start = time.perf_counter()
        logger.info(
            "Movie fetch started",
            extra={
                "start_year": years.start_year,
                "end_year": years.end_year,
                "pool_size": self.pool.size,
                "page_ceiling": self.settings.discovery_page_ceiling,
            },
        )

        first_pages: dict[int, ParsedPage] = {}
        if self.settings.preflight_check:
            with log_context(phase="preflight"):
                first_pages[years.start_year] = await self.preflight(years.start_year)

        with log_context(phase="discovery"):
            movies = await self.discovery.run(years.years, first_pages=first_pages)

        pause = self.settings.inter_phase_pause_seconds
        if pause > 0:
            logger.info("Waiting before enrichment", extra={"pause_seconds": pause, "records": len(movies)})
            await self._sleep(pause)

        with log_context(phase="enrichment"):
            await self.enrichment.run(movies)
        self.catalog.translate(movies)

        logger.info(
            "Movie fetch completed",
            extra={
                "records": len(movies),
                "enriched": self.enrichment.stats.enriched,
                "skipped_pages": self.discovery.stats.pages_failed,
                "skipped_records": self.enrichment.stats.failed,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return movies
