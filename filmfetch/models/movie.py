from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PersonRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


def unique_people(people: Iterable[PersonRef]) -> list[PersonRef]:
    """Drop repeated person ids, keeping the first occurrence and the original order."""
    seen: set[int] = set()
    unique: list[PersonRef] = []
    for person in people:
        if person.id in seen:
            continue
        seen.add(person.id)
        unique.append(person)
    return unique


class Enrichment(BaseModel):
    runtime_minutes: int = Field(default=0, ge=0)
    director: PersonRef | None = None
    cast: list[PersonRef] = Field(default_factory=list, description="unique by person id")

    @field_validator("cast")
    @classmethod
    def _unique_cast(cls, value: list[PersonRef]) -> list[PersonRef]:
        return unique_people(value)


class MovieRecord(BaseModel):
    external_id: int
    title: str = ""
    original_title: str = ""
    overview: str = ""
    original_language: str = ""
    # kept as the upstream string, may be empty or malformed
    release_date: str = ""
    popularity: float = Field(default=0.0, ge=0.0)
    vote_average: float = 0.0
    vote_count: int = Field(default=0, ge=0)
    adult: bool = False
    poster_path: str | None = None
    backdrop_path: str | None = None
    genre_ids: set[int] = Field(default_factory=set)
    genre_names: list[str] = Field(default_factory=list)
    runtime_minutes: int = 0
    director: PersonRef | None = None
    cast: list[PersonRef] = Field(default_factory=list, description="unique by person id")

    @field_validator("cast")
    @classmethod
    def _unique_cast(cls, value: list[PersonRef]) -> list[PersonRef]:
        return unique_people(value)

    @property
    def is_enriched(self) -> bool:
        return self.runtime_minutes > 0 or self.director is not None or bool(self.cast)

    def apply_enrichment(self, enrichment: Enrichment) -> None:
        # identity and genres belong to discovery and are never touched here
        self.runtime_minutes = enrichment.runtime_minutes
        self.director = enrichment.director
        # attribute assignment skips validation
        self.cast = unique_people(enrichment.cast)
