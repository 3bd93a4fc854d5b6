import json
import logging
from pathlib import Path
from typing import Protocol

from filmfetch.models.movie import MovieRecord

logger = logging.getLogger(__name__)


class MovieSink(Protocol):
    """Persistence collaborator. Receives genres first, then finished records."""

    def save_genres(self, genres: list[tuple[int, str]]) -> None:
        ...

    def save_movies(self, movies: list[MovieRecord]) -> None:
        ...


class JsonLinesSink:
    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    @property
    def genres_path(self) -> Path:
        return self.output_dir / "genres.jsonl"

    @property
    def movies_path(self) -> Path:
        return self.output_dir / "movies.jsonl"

    def save_genres(self, genres: list[tuple[int, str]]) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with self.genres_path.open("w", encoding="utf-8") as f:
            for genre_id, name in genres:
                f.write(json.dumps({"id": genre_id, "name": name}, ensure_ascii=True) + "\n")
        logger.info("Genres written", extra={"path": str(self.genres_path), "genres": len(genres)})

    def save_movies(self, movies: list[MovieRecord]) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with self.movies_path.open("w", encoding="utf-8") as f:
            for movie in movies:
                # sets are not JSON; sorted lists keep the output stable
                payload = movie.model_dump(mode="json")
                payload["genre_ids"] = sorted(movie.genre_ids)
                f.write(json.dumps(payload, ensure_ascii=True) + "\n")
        logger.info("Movies written", extra={"path": str(self.movies_path), "movies": len(movies)})
