import json
from typing import Any

from filmfetch.core.errors import ApplicationError, MalformedResponseError

_ERROR_MARKERS = ("status_code", "status_message")


def safe_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def safe_optional_str(value: Any) -> str | None:
    text = safe_str(value)
    return text or None


def safe_float(value: Any, minimum: float | None = None) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if result != result:  # NaN
        return 0.0
    if minimum is not None:
        result = max(result, minimum)
    return result


def safe_int(value: Any, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        result = value
    elif isinstance(value, float) and value == value:
        result = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        result = int(value.strip())
    else:
        return 0
    if minimum is not None:
        result = max(result, minimum)
    return result


def safe_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value) if isinstance(value, (bool, int)) else False


def safe_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_genre_ids(value: Any) -> set[int]:
    if not isinstance(value, list):
        return set()
    genre_ids = set()
    for item in value:
        # detail payloads carry {"id": ..., "name": ...} objects, discovery payloads bare ints
        genre_id = safe_id(item.get("id")) if isinstance(item, dict) else safe_id(item)
        if genre_id is not None:
            genre_ids.add(genre_id)
    return genre_ids


def raise_for_application_error(payload: dict[str, Any], url: str | None = None) -> None:
    if payload.get("success") is False or any(marker in payload for marker in _ERROR_MARKERS):
        raise ApplicationError(
            payload.get("status_code"),
            safe_str(payload.get("status_message")) or "unknown upstream error",
            url=url,
        )


def decode_payload(body: str | bytes | dict[str, Any], url: str | None = None) -> dict[str, Any]:
    """Turn a response body into a JSON object, surfacing upstream error payloads."""
    if isinstance(body, dict):
        payload: Any = body
    else:
        try:
            payload = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError("Response body is not valid JSON", url=url) from exc

    if not isinstance(payload, dict):
        raise MalformedResponseError(
            "Response body is not a JSON object",
            url=url,
            details={"type": type(payload).__name__},
        )
    raise_for_application_error(payload, url)
    return payload
