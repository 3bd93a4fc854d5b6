import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

from filmfetch.core.errors import redact_url

_BASE_LOG_KEYS = set(logging.makeLogRecord({}).__dict__.keys())

# tasks started inside a phase copy these, so per-page and per-record lines carry them too
_run_id: ContextVar[str | None] = ContextVar("filmfetch_run_id", default=None)
_phase: ContextVar[str | None] = ContextVar("filmfetch_phase", default=None)


@contextmanager
def log_context(*, run_id: str | None = None, phase: str | None = None) -> Iterator[None]:
    """Tag every log line emitted inside the block with the ingestion run and phase."""
    tokens = []
    if run_id is not None:
        tokens.append((_run_id, _run_id.set(run_id)))
    if phase is not None:
        tokens.append((_phase, _phase.set(phase)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def _safe_json_value(key: str, value):
    if key == "url" and isinstance(value, str):
        return redact_url(value)
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, dict)):
        return value
    # genre id sets and similar
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def _json_formatter(record: logging.LogRecord) -> str:
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    run_id = _run_id.get()
    if run_id is not None:
        payload["run_id"] = run_id
    phase = _phase.get()
    if phase is not None:
        payload["phase"] = phase
    for key, value in record.__dict__.items():
        if key in _BASE_LOG_KEYS or key in {"message", "asctime"}:
            continue
        payload[key] = _safe_json_value(key, value)
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    return json.dumps(payload, ensure_ascii=True, default=str)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _json_formatter(record)


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLogFormatter())

    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs every request line at INFO, which would also leak the api_key query parameter
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
