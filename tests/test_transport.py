from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
import pytest

from antfleet._transport import HttpTransport
from antfleet.exceptions import (
    AntAuthenticationError,
    AntNetworkError,
    AntParseError,
    AntServerError,
)


class _FakeResponse:
    def __init__(self, status: int, text: str, text_error: Exception | None = None) -> None:
        self.status = status
        self._text = text
        self._text_error = text_error

    async def text(self) -> str:
        if self._text_error is not None:
            raise self._text_error
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeHttpSession:
    def __init__(
        self,
        status: int = 200,
        text: str = "",
        error: BaseException | None = None,
        text_error: Exception | None = None,
    ) -> None:
        self._status = status
        self._text = text
        self._error = error
        self._text_error = text_error
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        if self._error is not None:
            raise self._error
        return _FakeResponse(self._status, self._text, self._text_error)


def _transport(session: _FakeHttpSession) -> HttpTransport:
    return HttpTransport(session, timeout=5.0)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_successful_request_decodes_json_and_sets_headers() -> None:
    session = _FakeHttpSession(text='{"payload": {"vehicles": []}}')

    body = await _transport(session).request_json(
        "POST", "http://ant/wms/rest/v2/missions", token="tok", json_body={"a": 1}
    )

    assert body == {"payload": {"vehicles": []}}
    sent = session.requests[0]
    assert sent["headers"]["authorization"] == "Bearer tok"
    assert sent["headers"]["content-type"].startswith("application/json")
    assert sent["data"] == '{"a": 1}'


@pytest.mark.asyncio
async def test_empty_body_returns_none() -> None:
    assert await _transport(_FakeHttpSession(status=204, text="  ")).request_json("DELETE", "http://ant/x") is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type"),
    [(401, AntAuthenticationError), (404, AntServerError), (500, AntServerError)],
)
async def test_non_2xx_statuses_map_to_server_errors(status: int, error_type: type[Exception]) -> None:
    with pytest.raises(error_type) as exc_info:
        await _transport(_FakeHttpSession(status=status, text="nope")).request_json("GET", "http://ant/v2/alarms")

    exc = exc_info.value
    assert isinstance(exc, AntServerError)
    assert exc.status_code == status
    assert exc.endpoint == "http://ant/v2/alarms"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
async def test_transport_failures_map_to_network_error(error: BaseException) -> None:
    with pytest.raises(AntNetworkError):
        await _transport(_FakeHttpSession(error=error)).request_json("GET", "http://ant/v2/vehicles")


@pytest.mark.asyncio
async def test_invalid_json_is_a_parse_error() -> None:
    with pytest.raises(AntParseError):
        await _transport(_FakeHttpSession(text="<html>")).request_json("GET", "http://ant/v2/vehicles")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [UnicodeDecodeError("utf-8", b'{"payload": "\xff\xfe"}', 13, 14, "invalid start byte"), LookupError("x-unknown")],
)
async def test_undecodable_body_is_a_parse_error(error: Exception) -> None:
    session = _FakeHttpSession(text_error=error)

    with pytest.raises(AntParseError) as exc_info:
        await _transport(session).request_json("GET", "http://ant/v2/vehicles")

    assert exc_info.value.endpoint == "http://ant/v2/vehicles"
    assert exc_info.value.__cause__ is error
