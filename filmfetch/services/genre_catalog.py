from collections.abc import Iterable, Mapping
from types import MappingProxyType

from filmfetch.models.movie import MovieRecord

UNKNOWN_GENRE = "Unknown Genre"

DEFAULT_MOVIE_GENRES: Mapping[int, str] = MappingProxyType(
    {
        28: "Action",
        12: "Adventure",
        16: "Animation",
        35: "Comedy",
        80: "Crime",
        99: "Documentary",
        18: "Drama",
        10751: "Family",
        14: "Fantasy",
        36: "History",
        27: "Horror",
        10402: "Music",
        9648: "Mystery",
        10749: "Romance",
        878: "Science Fiction",
        10770: "TV Movie",
        53: "Thriller",
        10752: "War",
        37: "Western",
    }
)


class GenreCatalog:
    """Immutable genre id to display name lookup, built once and passed around."""

    def __init__(self, names: Mapping[int, str]):
        self._names: Mapping[int, str] = MappingProxyType(dict(names))

    @classmethod
    def default(cls) -> "GenreCatalog":
        return cls(DEFAULT_MOVIE_GENRES)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, genre_id: object) -> bool:
        return genre_id in self._names

    def name_for(self, genre_id: int) -> str:
        return self._names.get(genre_id, UNKNOWN_GENRE)

    def names_for(self, genre_ids: Iterable[int]) -> list[str]:
        # ordered by id so repeated runs produce identical lists
        return [self.name_for(genre_id) for genre_id in sorted(set(genre_ids))]

    def entries(self) -> list[tuple[int, str]]:
        return sorted(self._names.items())

    def translate(self, records: Iterable[MovieRecord]) -> None:
        for record in records:
            record.genre_names = self.names_for(record.genre_ids)
