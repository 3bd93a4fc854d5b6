from typing import Any

import httpx

from filmfetch.core.errors import ConfigError
from filmfetch.core.settings import Settings


class CatalogEndpoints:
    """Builds discovery, detail and credits URLs with the API key on every call."""

    def __init__(self, settings: Settings):
        if not settings.tmdb_api_key:
            raise ConfigError("TMDB_API_KEY is not set")
        self.settings = settings
        self._base_url = settings.tmdb_base_url.rstrip("/")

    def _params(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"api_key": self.settings.tmdb_api_key}
        if self.settings.tmdb_language:
            params["language"] = self.settings.tmdb_language
        if extra:
            params.update(extra)
        return params

    def _url(self, path: str, extra: dict[str, Any] | None = None) -> str:
        return str(httpx.URL(f"{self._base_url}{path}", params=self._params(extra)))

    def discovery_filters(self, year: int) -> dict[str, Any]:
        s = self.settings
        filters: dict[str, Any] = {
            "primary_release_date.gte": f"{year}-01-01",
            "primary_release_date.lte": f"{year}-12-31",
            "with_runtime.gte": s.min_runtime,
            "vote_average.gte": s.min_vote_average,
            "vote_count.gte": s.min_vote_count,
        }
        if s.without_genres:
            filters["without_genres"] = s.without_genres
        if s.with_poster:
            filters["with_poster"] = "true"
        if s.release_types:
            filters["with_release_type"] = s.release_types
        return filters

    def discover_url(self, year: int, page: int) -> str:
        return self._url("/discover/movie", {**self.discovery_filters(year), "page": page})

    def detail_url(self, movie_id: int) -> str:
        return self._url(f"/movie/{movie_id}")

    def credits_url(self, movie_id: int) -> str:
        return self._url(f"/movie/{movie_id}/credits")
