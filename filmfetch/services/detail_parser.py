from typing import Any

from filmfetch.core.errors import MalformedResponseError
from filmfetch.models.movie import Enrichment, PersonRef, unique_people
from filmfetch.services.normalizer import decode_payload, safe_id, safe_int, safe_str

DIRECTOR_JOB = "Director"


def _person(entry: Any) -> PersonRef | None:
    if not isinstance(entry, dict):
        return None
    person_id = safe_id(entry.get("id"))
    if person_id is None:
        return None
    return PersonRef(id=person_id, name=safe_str(entry.get("name")))


def find_director(crew: Any) -> PersonRef | None:
    if not isinstance(crew, list):
        return None
    for entry in crew:
        if isinstance(entry, dict) and entry.get("job") == DIRECTOR_JOB:
            person = _person(entry)
            if person is not None:
                return person
    return None


def collect_cast(cast: Any) -> list[PersonRef]:
    if not isinstance(cast, list):
        return []
    return unique_people(person for person in map(_person, cast) if person is not None)


class DetailParser:
    def parse(
        self,
        detail: str | bytes | dict[str, Any],
        credits: str | bytes | dict[str, Any],
        expected_id: int | None = None,
        detail_url: str | None = None,
        credits_url: str | None = None,
    ) -> Enrichment:
        detail_payload = decode_payload(detail, detail_url)
        credits_payload = decode_payload(credits, credits_url)

        detail_id = safe_id(detail_payload.get("id"))
        if expected_id is not None and detail_id is not None and detail_id != expected_id:
            raise MalformedResponseError(
                "Detail response belongs to a different movie",
                url=detail_url,
                details={"expected_id": expected_id, "received_id": detail_id},
            )

        return Enrichment(
            runtime_minutes=safe_int(detail_payload.get("runtime"), minimum=0),
            director=find_director(credits_payload.get("crew")),
            cast=collect_cast(credits_payload.get("cast")),
        )
