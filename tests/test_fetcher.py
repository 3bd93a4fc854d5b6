import json
from datetime import date

import httpx
import pytest

from filmfetch.core.errors import ApplicationError, ConfigError, TransportError
from filmfetch.core.pool import WorkerPool
from filmfetch.core.settings import Settings
from filmfetch.models.ingest import YearRange
from filmfetch.services.fetcher import MovieFetcher
from filmfetch.services.genre_catalog import GenreCatalog


def _settings(**overrides) -> Settings:
    defaults = {
        "environment": "test",
        "tmdb_api_key": "test-key",
        "discovery_use_total_pages": False,
        "inter_phase_pause_seconds": 20.0,
        "enrichment_task_delay_seconds": 0.0,
        "enrichment_pause_every": 0,
    }
    defaults.update(overrides)
    return Settings(**defaults)


class _CatalogApiStub:
    def __init__(self, discover: dict[tuple[int, int], dict], movies: dict[str, dict | Exception]):
        self.discover = discover
        self.movies = movies
        self.requested: list[str] = []
        self.discover_requests: list[tuple[int, int]] = []

    async def fetch(self, url: str) -> str:
        parsed = httpx.URL(url)
        path = parsed.path.removeprefix("/3")
        self.requested.append(path)
        if path == "/discover/movie":
            key = (int(parsed.params["primary_release_date.gte"][:4]), int(parsed.params["page"]))
            self.discover_requests.append(key)
            return json.dumps(self.discover.get(key, {"results": []}))
        value = self.movies.get(path)
        if value is None:
            raise TransportError(url, "HTTP 404", status_code=404)
        if isinstance(value, Exception):
            raise value
        return json.dumps(value)


class _SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _fetcher(stub: _CatalogApiStub, settings: Settings, sleep: _SleepRecorder, catalog: GenreCatalog) -> MovieFetcher:
    return MovieFetcher(settings, stub, WorkerPool(settings.worker_pool_size), catalog, sleep=sleep)


@pytest.mark.asyncio
async def test_two_movies_one_enriched_one_failed() -> None:
    stub = _CatalogApiStub(
        discover={
            (2020, 1): {
                "results": [
                    {"id": 10, "title": "Ten", "genre_ids": [28]},
                    {"id": 20, "title": "Twenty", "genre_ids": [28]},
                ]
            }
        },
        movies={
            "/movie/10": {"id": 10, "runtime": 120},
            "/movie/10/credits": {
                "crew": [{"id": 1, "name": "Jane Doe", "job": "Director"}],
                "cast": [{"id": 2, "name": "Alan Smith"}],
            },
            "/movie/20": TransportError("https://api.themoviedb.org/3/movie/20", "connection reset"),
        },
    )
    sleep = _SleepRecorder()
    fetcher = _fetcher(stub, _settings(), sleep, GenreCatalog({28: "Action"}))

    movies = await fetcher.fetch_movies(YearRange(start_year=2020, end_year=2020))

    by_id = {movie.external_id: movie for movie in movies}
    assert sorted(by_id) == [10, 20]

    enriched = by_id[10]
    assert enriched.runtime_minutes == 120
    assert enriched.director is not None and enriched.director.name == "Jane Doe"
    assert [person.name for person in enriched.cast] == ["Alan Smith"]

    failed = by_id[20]
    assert failed.runtime_minutes == 0
    assert failed.director is None
    assert failed.cast == []
    assert failed.title == "Twenty"

    for movie in movies:
        assert movie.genre_ids == {28}
        assert movie.genre_names == ["Action"]

    assert 20.0 in sleep.calls
    assert stub.discover_requests.count((2020, 1)) == 1
    assert len(stub.discover_requests) == 500


@pytest.mark.asyncio
async def test_preflight_application_error_is_fatal() -> None:
    stub = _CatalogApiStub(
        discover={(2020, 1): {"success": False, "status_code": 7, "status_message": "Invalid API key"}},
        movies={},
    )
    fetcher = _fetcher(stub, _settings(preflight_check=True), _SleepRecorder(), GenreCatalog.default())

    with pytest.raises(ApplicationError):
        await fetcher.fetch_movies(YearRange(start_year=2020, end_year=2020))

    assert stub.requested == ["/discover/movie"]


@pytest.mark.asyncio
async def test_application_error_inside_discovery_is_skipped() -> None:
    stub = _CatalogApiStub(
        discover={
            (2020, 1): {"results": [{"id": 1, "genre_ids": [18]}]},
            (2020, 2): {"success": False, "status_code": 25, "status_message": "Request count over limit"},
        },
        movies={},
    )
    settings = _settings(preflight_check=False, discovery_page_ceiling=5, inter_phase_pause_seconds=0.0)
    fetcher = _fetcher(stub, settings, _SleepRecorder(), GenreCatalog.default())

    movies = await fetcher.fetch_movies(YearRange(start_year=2020, end_year=2020))

    assert [movie.external_id for movie in movies] == [1]
    assert movies[0].genre_names == ["Drama"]
    assert fetcher.discovery.stats.pages_failed == 1


def test_missing_api_key_is_config_error() -> None:
    settings = Settings(environment="test", tmdb_api_key=None)

    with pytest.raises(ConfigError):
        MovieFetcher(settings, _CatalogApiStub({}, {}), WorkerPool(2), GenreCatalog.default())


def test_default_year_range_spans_configured_years() -> None:
    settings = _settings(discovery_year_span=55)
    fetcher = _fetcher(_CatalogApiStub({}, {}), settings, _SleepRecorder(), GenreCatalog.default())

    years = fetcher.default_year_range(today=date(2026, 10, 19))

    assert years.start_year == 1971
    assert years.end_year == 2026
    assert len(years.years) == 56


@pytest.mark.asyncio
async def test_preflight_page_seeds_discovery_with_total_pages() -> None:
    stub = _CatalogApiStub(
        discover={
            (2021, 1): {"results": [{"id": 1, "genre_ids": [18]}], "total_pages": 2},
            (2021, 2): {"results": [{"id": 2, "genre_ids": [18]}], "total_pages": 2},
        },
        movies={},
    )
    settings = _settings(discovery_use_total_pages=True, inter_phase_pause_seconds=0.0)
    fetcher = _fetcher(stub, settings, _SleepRecorder(), GenreCatalog.default())

    movies = await fetcher.fetch_movies(YearRange(start_year=2021, end_year=2021))

    assert sorted(movie.external_id for movie in movies) == [1, 2]
    assert sorted(stub.discover_requests) == [(2021, 1), (2021, 2)]
