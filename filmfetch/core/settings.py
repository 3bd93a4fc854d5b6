from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_DISCOVERY_PAGES = 500


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "filmfetch"
    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    tmdb_api_key: str | None = None
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_timeout_seconds: float = 20.0
    # empty means the upstream default language
    tmdb_language: str = ""
    http_retry_backoff_seconds: float = Field(default=0.5, ge=0.0)
    # 0 disables the shared token bucket
    tmdb_requests_per_second: float = Field(default=40.0, ge=0.0)
    tmdb_burst: int = Field(default=40, ge=1)

    worker_pool_size: int = Field(default=15, ge=1)
    preflight_check: bool = True

    discovery_year_span: int = Field(default=55, ge=0)
    discovery_page_ceiling: int = Field(default=MAX_DISCOVERY_PAGES, ge=1, le=MAX_DISCOVERY_PAGES)
    discovery_use_total_pages: bool = True
    without_genres: str = "99"
    min_runtime: int = Field(default=80, ge=0)
    min_vote_average: float = Field(default=3.0, ge=0.0, le=10.0)
    min_vote_count: int = Field(default=20, ge=0)
    with_poster: bool = True
    release_types: str = "3|6"

    inter_phase_pause_seconds: float = Field(default=20.0, ge=0.0)
    enrichment_task_delay_seconds: float = Field(default=0.1, ge=0.0)
    # 0 means never take the periodic batch pause
    enrichment_pause_every: int = Field(default=1000, ge=0)
    enrichment_pause_seconds: float = Field(default=5.0, ge=0.0)
    enrichment_progress_every: int = Field(default=1000, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
