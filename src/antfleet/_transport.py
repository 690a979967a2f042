"""HTTP transport for the ANT REST API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from antfleet._constants import USER_AGENT
from antfleet._redact import redact_for_log
from antfleet.exceptions import (
    AntAuthenticationError,
    AntNetworkError,
    AntParseError,
    AntServerError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        ...


class HttpTransport:
    """JSON-over-HTTP transport with bearer token authentication."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 30.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Returns ``None`` for empty bodies. Raises :class:`AntNetworkError`
        on transport failures, :class:`AntAuthenticationError` on 401,
        :class:`AntServerError` on any other non-2xx status and
        :class:`AntParseError` when the body is not JSON.
        """
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if token:
            headers["authorization"] = f"Bearer {token}"

        data: str | None = None
        if json_body is not None:
            data = json.dumps(json_body)
            headers["content-type"] = "application/json; charset=utf-8"
            _logger.debug("%s %s body=%s", method, url, redact_for_log(json_body))
        else:
            _logger.debug("%s %s params=%s", method, url, dict(params or {}))

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                try:
                    text = await resp.text()
                except (UnicodeDecodeError, LookupError) as exc:
                    raise AntParseError(f"Undecodable body from {url} (HTTP {status}): {exc}", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise AntNetworkError(f"{method} {url} failed: {exc}", endpoint=url) from exc
        except asyncio.TimeoutError as exc:
            raise AntNetworkError(f"{method} {url} timed out", endpoint=url) from exc

        if status == 401:
            raise AntAuthenticationError(
                f"HTTP 401 from {url}",
                status_code=status,
                endpoint=url,
            )
        if not 200 <= status < 300:
            raise AntServerError(
                f"HTTP {status} from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
            )

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise AntParseError(f"Invalid JSON from {url}: {text[:200]}", endpoint=url) from exc
