"""Mission endpoints.

Endpoints:
  - GET    /{version}/missions
  - POST   /{version}/missions
  - DELETE /{version}/missions/{id}

The list endpoint accepts JSON-encoded query parameters: ``dataorderby``
(ordering), ``datarange`` (``[first,last]`` row window) and
``dataselection`` (criteria combined with a composition operator).
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any
from urllib.parse import quote

from antfleet._api._common import get_resource, parse_items, payload_list
from antfleet._constants import (
    DEFAULT_MISSION_CARDINALITY,
    DEFAULT_MISSION_PRIORITY,
    DEFAULT_RECENT_WINDOW,
    DEFAULT_REQUESTOR,
    SELECTION_TIME_FORMAT,
)
from antfleet._transport import Transport
from antfleet.models.mission import Mission
from antfleet.session import Session

ENDPOINT = "missions"


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def build_recent_selection(now: datetime, window: timedelta = DEFAULT_RECENT_WINDOW) -> dict[str, Any]:
    """Selection for open missions plus anything that arrived within *window*.

    The server compares against local wall-clock time.
    """
    threshold = (now - window).astimezone().strftime(SELECTION_TIME_FORMAT)
    return {
        "criteria": [
            "navigationstate::int IN:0|1|3",
            f"arrivingtime::date GT:{threshold}",
        ],
        "composition": "OR",
    }


def build_mission_query(
    *,
    recent_only: bool = True,
    max_mission_id: int | None = None,
    now: datetime | None = None,
    window: timedelta = DEFAULT_RECENT_WINDOW,
) -> dict[str, str]:
    """Query parameters for the mission list.

    A ``max_mission_id`` range request disables the recent selection.
    """
    params: dict[str, str] = {"dataorderby": _compact([["createdat", "desc"]])}
    if max_mission_id is not None:
        params["datarange"] = f"[0,{max_mission_id}]"
        recent_only = False
    if recent_only:
        params["dataselection"] = _compact(build_recent_selection(now or datetime.now(UTC), window))
    return params


async def fetch_missions(
    session: Session,
    transport: Transport,
    *,
    recent_only: bool = True,
    max_mission_id: int | None = None,
    now: datetime | None = None,
    window: timedelta = DEFAULT_RECENT_WINDOW,
) -> list[Mission]:
    """Fetch missions ordered by creation time, newest first."""
    params = build_mission_query(
        recent_only=recent_only,
        max_mission_id=max_mission_id,
        now=now,
        window=window,
    )
    body = await get_resource(session, transport, ENDPOINT, params=params)
    items = payload_list(body, "missions", endpoint=ENDPOINT)
    return parse_items(items, Mission.model_validate, endpoint=ENDPOINT)


def build_mission_request(
    mission_type: str,
    from_node: str,
    to_node: str,
    *,
    vehicle: str | None = None,
    requestor: str = DEFAULT_REQUESTOR,
    priority: str = DEFAULT_MISSION_PRIORITY,
) -> dict[str, Any]:
    return {
        "missionrequest": {
            "requestor": requestor,
            "missiontype": mission_type,
            "fromnode": from_node,
            "tonode": to_node,
            "cardinality": DEFAULT_MISSION_CARDINALITY,
            "priority": priority,
            "deadline": "",
            "parameters": {
                "desc": "Mission extension",
                "type": "org.json.JSONObject",
                "name": "parameters",
                "value": {
                    "payload": "Default Payload",
                    "vehicle": vehicle or "",
                },
            },
        }
    }


async def create_mission(
    session: Session,
    transport: Transport,
    mission_type: str,
    from_node: str,
    to_node: str,
    *,
    vehicle: str | None = None,
) -> Any:
    """Submit a mission request and return the server's answer."""
    return await transport.request_json(
        "POST",
        session.resource_url(ENDPOINT),
        token=session.token,
        json_body=build_mission_request(mission_type, from_node, to_node, vehicle=vehicle),
    )


async def cancel_mission(session: Session, transport: Transport, mission_id: str) -> None:
    await transport.request_json(
        "DELETE",
        session.resource_url(f"{ENDPOINT}/{quote(mission_id, safe='')}"),
        token=session.token,
    )
