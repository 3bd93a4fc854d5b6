import re
from typing import Any

_API_KEY_PATTERN = re.compile(r"(api_key=)[^&\s]+")


def redact_url(url: str) -> str:
    return _API_KEY_PATTERN.sub(r"\1***", str(url))


class FetcherError(Exception):
    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class TransportError(FetcherError):
    """Network or HTTP failure that survived the client's single retry."""

    def __init__(self, url: str, cause: BaseException | str, status_code: int | None = None):
        self.url = redact_url(url)
        self.cause = cause
        self.status_code = status_code
        details: dict[str, Any] = {"url": self.url, "cause": _describe(cause)}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__("transport_error", f"GET {self.url} failed", details)


class MalformedResponseError(FetcherError):
    def __init__(self, message: str, url: str | None = None, details: dict[str, Any] | None = None):
        merged = dict(details or {})
        if url is not None:
            merged["url"] = redact_url(url)
        super().__init__("malformed_response", message, merged)


class ApplicationError(FetcherError):
    """Upstream answered with a success status but an error payload in the body."""

    def __init__(self, upstream_code: Any, upstream_message: str, url: str | None = None):
        self.upstream_code = upstream_code
        self.upstream_message = upstream_message
        details: dict[str, Any] = {"upstream_code": upstream_code, "upstream_message": upstream_message}
        if url is not None:
            details["url"] = redact_url(url)
        super().__init__("upstream_application_error", f"Upstream reported an error: {upstream_message}", details)


class PoolError(FetcherError):
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("worker_pool_error", message, details)


class ConfigError(FetcherError):
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__("config_error", message, details)


def _describe(cause: BaseException | str) -> str:
    if isinstance(cause, BaseException):
        text = str(cause)
        return f"{cause.__class__.__name__}: {text}" if text else cause.__class__.__name__
    return cause


# failures that cost one page or one record, never the batch
SKIPPABLE_ERRORS = (TransportError, MalformedResponseError, ApplicationError)
