import logging
from dataclasses import dataclass, field
from typing import Any

from filmfetch.core.errors import MalformedResponseError
from filmfetch.models.movie import MovieRecord
from filmfetch.services.normalizer import (
    decode_payload,
    parse_genre_ids,
    safe_bool,
    safe_float,
    safe_id,
    safe_int,
    safe_optional_str,
    safe_str,
)

logger = logging.getLogger(__name__)


@dataclass
class ParsedPage:
    records: list[MovieRecord] = field(default_factory=list)
    total_pages: int | None = None
    skipped: int = 0


def normalize_summary(item: Any) -> MovieRecord | None:
    if not isinstance(item, dict):
        return None
    movie_id = safe_id(item.get("id"))
    if movie_id is None:
        return None

    return MovieRecord(
        external_id=movie_id,
        title=safe_str(item.get("title")),
        original_title=safe_str(item.get("original_title")),
        overview=safe_str(item.get("overview")),
        original_language=safe_str(item.get("original_language")),
        release_date=safe_str(item.get("release_date")),
        popularity=safe_float(item.get("popularity"), minimum=0.0),
        vote_average=safe_float(item.get("vote_average")),
        vote_count=safe_int(item.get("vote_count"), minimum=0),
        adult=safe_bool(item.get("adult")),
        poster_path=safe_optional_str(item.get("poster_path")),
        backdrop_path=safe_optional_str(item.get("backdrop_path")),
        genre_ids=parse_genre_ids(item.get("genre_ids")),
    )


class PageParser:
    def parse_page(self, page: str | bytes | dict[str, Any], url: str | None = None) -> ParsedPage:
        payload = decode_payload(page, url)
        results = payload.get("results")
        if not isinstance(results, list):
            raise MalformedResponseError("Discovery page has no results array", url=url)

        parsed = ParsedPage()
        total_pages = payload.get("total_pages")
        if isinstance(total_pages, int) and not isinstance(total_pages, bool) and total_pages >= 0:
            parsed.total_pages = total_pages

        for item in results:
            record = normalize_summary(item)
            if record is None:
                parsed.skipped += 1
                continue
            parsed.records.append(record)

        if parsed.skipped:
            logger.debug("Skipped discovery results without a usable id", extra={"skipped": parsed.skipped})
        return parsed

    def parse(self, page: str | bytes | dict[str, Any], url: str | None = None) -> list[MovieRecord]:
        return self.parse_page(page, url).records
