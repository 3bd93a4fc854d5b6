import logging
import time

from filmfetch.core.settings import Settings
from filmfetch.models.ingest import IngestReport, YearRange
from filmfetch.services.fetcher import MovieFetcher
from filmfetch.services.genre_catalog import GenreCatalog
from filmfetch.services.sinks import MovieSink

logger = logging.getLogger(__name__)


class IngestionService:
    def __init__(self, settings: Settings, fetcher: MovieFetcher, catalog: GenreCatalog, sink: MovieSink):
        self.settings = settings
        self.fetcher = fetcher
        self.catalog = catalog
        self.sink = sink

    async def run(self, year_range: YearRange | None = None) -> IngestReport:
        years = year_range or self.fetcher.default_year_range()
        start = time.perf_counter()
        logger.info("Ingestion started", extra={"start_year": years.start_year, "end_year": years.end_year})

        genres = self.catalog.entries()
        self.sink.save_genres(genres)

        movies = await self.fetcher.fetch_movies(years)
        if not movies:
            logger.warning("Ingestion produced no movies", extra={"start_year": years.start_year, "end_year": years.end_year})
        self.sink.save_movies(movies)

        report = IngestReport(
            start_year=years.start_year,
            end_year=years.end_year,
            movies=len(movies),
            enriched=sum(1 for movie in movies if movie.is_enriched),
            genres=len(genres),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        logger.info("Ingestion completed", extra=report.model_dump())
        return report
