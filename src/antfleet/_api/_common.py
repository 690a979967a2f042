"""Shared helpers for ANT endpoint modules.

This module centralizes the most repeated patterns:
- issuing an authenticated GET against a versioned resource
- unwrapping the ``{"payload": {...}}`` envelope
- turning pydantic validation failures into :class:`AntParseError`

It is internal to antfleet and may change at any time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from antfleet._transport import Transport
from antfleet.exceptions import AntParseError
from antfleet.session import Session

T = TypeVar("T")


async def get_resource(
    session: Session,
    transport: Transport,
    resource: str,
    *,
    params: Mapping[str, str] | None = None,
) -> Any:
    """GET a versioned resource with the session token."""
    return await transport.request_json(
        "GET",
        session.resource_url(resource),
        token=session.token,
        params=params,
    )


def payload_of(body: Any, *, endpoint: str) -> dict[str, Any]:
    """Return the ``payload`` object of a response body.

    A missing payload is treated as empty; a body that is not an object is
    malformed.
    """
    if not isinstance(body, dict):
        raise AntParseError(f"{endpoint} returned {type(body).__name__}, expected an object", endpoint=endpoint)
    payload = body.get("payload")
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise AntParseError(f"{endpoint} payload is {type(payload).__name__}, expected an object", endpoint=endpoint)
    return payload


def payload_list(body: Any, key: str, *, endpoint: str) -> list[dict[str, Any]]:
    """Return ``payload[key]`` as a list of objects (missing -> empty)."""
    items = payload_of(body, endpoint=endpoint).get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise AntParseError(f"{endpoint} payload.{key} is not a list", endpoint=endpoint)
    return [item for item in items if isinstance(item, dict)]


def parse_items(
    items: list[dict[str, Any]],
    parse: Callable[[dict[str, Any]], T],
    *,
    endpoint: str,
) -> list[T]:
    """Decode every item, mapping validation errors to :class:`AntParseError`."""
    try:
        return [parse(item) for item in items]
    except ValidationError as exc:
        raise AntParseError(f"{endpoint} returned an invalid item: {exc}", endpoint=endpoint) from exc
