import json

import pytest

from filmfetch.core.errors import ApplicationError, MalformedResponseError
from filmfetch.services.page_parser import PageParser


def _page() -> dict:
    return {
        "page": 1,
        "total_pages": 4,
        "results": [
            {
                "id": 550,
                "title": "Fight Club",
                "original_title": "Fight Club",
                "overview": "An insomniac office worker...",
                "original_language": "en",
                "release_date": "1999-10-15",
                "popularity": 61.4,
                "vote_average": 8.4,
                "vote_count": 29000,
                "adult": False,
                "poster_path": "/poster.jpg",
                "backdrop_path": "/backdrop.jpg",
                "genre_ids": [18, 53, 18],
            },
            {"id": 551},
        ],
    }


def test_parse_extracts_summary_fields() -> None:
    parsed = PageParser().parse_page(json.dumps(_page()))

    assert parsed.total_pages == 4
    movie = parsed.records[0]
    assert movie.external_id == 550
    assert movie.title == "Fight Club"
    assert movie.release_date == "1999-10-15"
    assert movie.popularity == 61.4
    assert movie.vote_average == 8.4
    assert movie.vote_count == 29000
    assert movie.poster_path == "/poster.jpg"
    assert movie.genre_ids == {18, 53}
    assert movie.runtime_minutes == 0
    assert movie.director is None
    assert movie.cast == []
    assert movie.genre_names == []


def test_missing_fields_decode_to_defaults() -> None:
    movie = PageParser().parse(_page())[1]

    assert movie.external_id == 551
    assert movie.title == ""
    assert movie.overview == ""
    assert movie.release_date == ""
    assert movie.popularity == 0.0
    assert movie.vote_count == 0
    assert movie.adult is False
    assert movie.poster_path is None
    assert movie.backdrop_path is None
    assert movie.genre_ids == set()


def test_results_without_usable_id_are_skipped() -> None:
    page = {"results": [{"title": "no id"}, {"id": "abc"}, "junk", {"id": 7, "genre_ids": [28]}]}

    parsed = PageParser().parse_page(page)

    assert [movie.external_id for movie in parsed.records] == [7]
    assert parsed.skipped == 3


def test_empty_results_array_yields_no_records() -> None:
    assert PageParser().parse('{"results": [], "total_pages": 0}') == []


def test_page_without_results_array_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        PageParser().parse('{"page": 1}')


def test_invalid_json_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        PageParser().parse("<html>gateway timeout</html>")


def test_upstream_error_payload_is_application_error() -> None:
    body = '{"success": false, "status_code": 7, "status_message": "Invalid API key: You must be granted a valid key."}'

    with pytest.raises(ApplicationError) as exc:
        PageParser().parse(body)

    assert exc.value.upstream_code == 7
