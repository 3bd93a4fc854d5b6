import httpx
import pytest

from filmfetch.core.errors import TransportError
from filmfetch.core.settings import Settings
from filmfetch.services.http_client import HttpFetchClient

URL = "https://api.themoviedb.org/3/discover/movie?api_key=secret-key&page=1"


def _settings(**overrides) -> Settings:
    return Settings(environment="test", tmdb_api_key="secret-key", **overrides)


class _SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class _LimiterSpy:
    def __init__(self) -> None:
        self.acquired = 0

    async def acquire(self) -> None:
        self.acquired += 1


@pytest.mark.asyncio
async def test_fetch_returns_body_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text='{"results": []}')

    client = HttpFetchClient(_settings(), transport=httpx.MockTransport(handler))
    try:
        assert await client.fetch(URL) == '{"results": []}'
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_fetch_retries_once_after_fixed_backoff() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, text='{"ok": 1}')

    sleep = _SleepRecorder()
    limiter = _LimiterSpy()
    client = HttpFetchClient(
        _settings(http_retry_backoff_seconds=0.5),
        limiter=limiter,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
    )
    try:
        body = await client.fetch(URL)
    finally:
        await client.close()

    assert body == '{"ok": 1}'
    assert len(calls) == 2
    assert sleep.calls == [0.5]
    assert limiter.acquired == 2


@pytest.mark.asyncio
async def test_second_failure_raises_transport_error_with_url_and_cause() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("connection refused", request=request)

    client = HttpFetchClient(_settings(), transport=httpx.MockTransport(handler), sleep=_SleepRecorder())
    try:
        with pytest.raises(TransportError) as exc:
            await client.fetch(URL)
    finally:
        await client.close()

    assert calls == 2
    assert isinstance(exc.value.cause, httpx.ConnectError)
    assert "discover/movie" in exc.value.url
    assert "secret-key" not in exc.value.url
    assert exc.value.code == "transport_error"


@pytest.mark.asyncio
async def test_non_success_status_twice_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, text="slow down")

    client = HttpFetchClient(_settings(), transport=httpx.MockTransport(handler), sleep=_SleepRecorder())
    try:
        with pytest.raises(TransportError) as exc:
            await client.fetch(URL)
    finally:
        await client.close()

    assert exc.value.status_code == 429


@pytest.mark.asyncio
async def test_error_payload_with_success_status_is_not_retried() -> None:
    calls = 0
    error_body = '{"success": false, "status_code": 7, "status_message": "Invalid API key"}'

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, text=error_body)

    sleep = _SleepRecorder()
    client = HttpFetchClient(_settings(), transport=httpx.MockTransport(handler), sleep=sleep)
    try:
        assert await client.fetch(URL) == error_body
    finally:
        await client.close()

    assert calls == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_undecodable_body_is_retried_then_transport_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip")

    client = HttpFetchClient(_settings(), transport=httpx.MockTransport(handler), sleep=_SleepRecorder())
    try:
        with pytest.raises(TransportError) as exc:
            await client.fetch(URL)
    finally:
        await client.close()

    assert calls == 2
    assert isinstance(exc.value.cause, httpx.DecodingError)
