import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from filmfetch.core.errors import SKIPPABLE_ERRORS
from filmfetch.core.pool import ProgressCounter, WorkerPool
from filmfetch.core.settings import Settings
from filmfetch.models.movie import MovieRecord
from filmfetch.services.detail_parser import DetailParser
from filmfetch.services.http_client import FetchClient
from filmfetch.services.tmdb_endpoints import CatalogEndpoints

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class EnrichmentThrottle:
    """Batch-wide pacing for enrichment tasks.

    Each task waits a short fixed delay before its first request. Every
    ``pause_every`` completed tasks the whole batch holds for ``pause_seconds``:
    the gate closes, tasks that have not started yet wait on it, and it reopens
    once the pause is over.
    """

    def __init__(self, task_delay_seconds: float, pause_every: int, pause_seconds: float, sleep: Sleep = asyncio.sleep):
        self.task_delay_seconds = task_delay_seconds
        self.pause_every = pause_every
        self.pause_seconds = pause_seconds
        self.counter = ProgressCounter()
        self.pauses_taken = 0
        self._sleep = sleep
        self._gate = asyncio.Event()
        self._gate.set()

    @classmethod
    def from_settings(cls, settings: Settings, sleep: Sleep = asyncio.sleep) -> "EnrichmentThrottle":
        return cls(
            task_delay_seconds=settings.enrichment_task_delay_seconds,
            pause_every=settings.enrichment_pause_every,
            pause_seconds=settings.enrichment_pause_seconds,
            sleep=sleep,
        )

    async def before_task(self) -> None:
        await self._gate.wait()
        if self.task_delay_seconds > 0:
            await self._sleep(self.task_delay_seconds)

    async def after_task(self) -> int:
        completed = self.counter.increment()
        if self.pause_every > 0 and completed % self.pause_every == 0 and self.pause_seconds > 0:
            self._gate.clear()
            logger.info(
                "Pausing enrichment batch",
                extra={"completed": completed, "pause_seconds": self.pause_seconds},
            )
            try:
                await self._sleep(self.pause_seconds)
            finally:
                self._gate.set()
            self.pauses_taken += 1
        return completed


@dataclass
class EnrichmentStats:
    records: int = 0
    enriched: int = 0
    failed: int = 0
    pauses: int = 0


class EnrichmentPhase:
    def __init__(
        self,
        settings: Settings,
        fetch_client: FetchClient,
        pool: WorkerPool,
        endpoints: CatalogEndpoints,
        parser: DetailParser | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings
        self.fetch_client = fetch_client
        self.pool = pool
        self.endpoints = endpoints
        self.parser = parser or DetailParser()
        self._sleep = sleep
        self.stats = EnrichmentStats()

    async def _enrich(self, record: MovieRecord, throttle: EnrichmentThrottle, total: int) -> bool:
        await throttle.before_task()
        movie_id = record.external_id
        detail_url = self.endpoints.detail_url(movie_id)
        credits_url = self.endpoints.credits_url(movie_id)
        try:
            detail = await self.fetch_client.fetch(detail_url)
            credits = await self.fetch_client.fetch(credits_url)
            enrichment = self.parser.parse(
                detail,
                credits,
                expected_id=movie_id,
                detail_url=detail_url,
                credits_url=credits_url,
            )
        except SKIPPABLE_ERRORS as exc:
            logger.warning("Enrichment failed for movie", extra={"movie_id": movie_id, "error": exc.to_dict()})
            enriched = False
        else:
            record.apply_enrichment(enrichment)
            enriched = True

        completed = await throttle.after_task()
        if completed % self.settings.enrichment_progress_every == 0:
            logger.info("Enrichment progress", extra={"completed": completed, "total": total})
        return enriched

    async def run(self, records: list[MovieRecord]) -> EnrichmentStats:
        throttle = EnrichmentThrottle.from_settings(self.settings, sleep=self._sleep)
        total = len(records)
        logger.info("Enrichment phase started", extra={"records": total, "pool_size": self.pool.size})

        results = await self.pool.run_all(lambda record: self._enrich(record, throttle, total), records)

        enriched = sum(1 for ok in results if ok)
        self.stats = EnrichmentStats(
            records=total,
            enriched=enriched,
            failed=total - enriched,
            pauses=throttle.pauses_taken,
        )
        logger.info(
            "Enrichment phase completed",
            extra={
                "records": self.stats.records,
                "enriched": self.stats.enriched,
                "failed": self.stats.failed,
                "pauses": self.stats.pauses,
            },
        )
        return self.stats
