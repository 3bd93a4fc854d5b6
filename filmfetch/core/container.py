import logging

import httpx

from filmfetch.core.pool import WorkerPool
from filmfetch.core.rate_limit import TokenBucketLimiter
from filmfetch.core.settings import Settings
from filmfetch.services.discovery import DiscoveryPhase
from filmfetch.services.enrichment import EnrichmentPhase
from filmfetch.services.fetcher import MovieFetcher
from filmfetch.services.genre_catalog import GenreCatalog
from filmfetch.services.http_client import HttpFetchClient
from filmfetch.services.ingestion_service import IngestionService
from filmfetch.services.sinks import MovieSink
from filmfetch.services.tmdb_endpoints import CatalogEndpoints

logger = logging.getLogger(__name__)


class AppContainer:
    def __init__(
        self,
        settings: Settings,
        sink: MovieSink,
        catalog: GenreCatalog | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings

        self.endpoints = CatalogEndpoints(settings)
        self.limiter = TokenBucketLimiter(settings.tmdb_requests_per_second, capacity=settings.tmdb_burst)
        self.http_client = HttpFetchClient(settings, limiter=self.limiter, transport=transport)
        self.pool = WorkerPool(settings.worker_pool_size)
        self.catalog = catalog or GenreCatalog.default()

        self.discovery = DiscoveryPhase(settings, self.http_client, self.pool, self.endpoints)
        self.enrichment = EnrichmentPhase(settings, self.http_client, self.pool, self.endpoints)
        self.fetcher = MovieFetcher(
            settings=settings,
            fetch_client=self.http_client,
            pool=self.pool,
            catalog=self.catalog,
            endpoints=self.endpoints,
            discovery=self.discovery,
            enrichment=self.enrichment,
        )
        self.ingestion_service = IngestionService(settings, self.fetcher, self.catalog, sink)

        logger.info(
            "App container initialized",
            extra={
                "environment": settings.environment,
                "tmdb_base_url": settings.tmdb_base_url,
                "worker_pool_size": settings.worker_pool_size,
                "requests_per_second": settings.tmdb_requests_per_second,
                "discovery_year_span": settings.discovery_year_span,
                "discovery_page_ceiling": settings.discovery_page_ceiling,
                "discovery_use_total_pages": settings.discovery_use_total_pages,
                "inter_phase_pause_seconds": settings.inter_phase_pause_seconds,
                "enrichment_task_delay_seconds": settings.enrichment_task_delay_seconds,
                "enrichment_pause_every": settings.enrichment_pause_every,
                "enrichment_pause_seconds": settings.enrichment_pause_seconds,
                "genres": len(self.catalog),
            },
        )

    async def close(self) -> None:
        self.pool.close()
        await self.http_client.close()
