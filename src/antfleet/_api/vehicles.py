"""Vehicle endpoints.

Endpoints:
  - GET  /{version}/vehicles
  - POST /{version}/vehicles/{name}/command
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from antfleet._api._common import get_resource, parse_items, payload_list
from antfleet._transport import Transport
from antfleet.models.vehicle import Vehicle
from antfleet.session import Session

_logger = logging.getLogger(__name__)

ENDPOINT = "vehicles"


async def fetch_vehicles(session: Session, transport: Transport) -> list[Vehicle]:
    """Fetch the current vehicle snapshot."""
    body = await get_resource(session, transport, ENDPOINT)
    items = payload_list(body, "vehicles", endpoint=ENDPOINT)
    return parse_items(items, Vehicle.from_payload, endpoint=ENDPOINT)


def build_vehicle_command(name: str, args: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"command": {"name": name, "args": dict(args or {})}}


async def send_vehicle_command(
    session: Session,
    transport: Transport,
    vehicle: str,
    command: str,
    args: dict[str, Any] | None = None,
) -> None:
    """Post a named command for one vehicle."""
    resource = f"{ENDPOINT}/{quote(vehicle, safe='')}/command"
    _logger.debug("Vehicle %s command %s args=%s", vehicle, command, args)
    await transport.request_json(
        "POST",
        session.resource_url(resource),
        token=session.token,
        json_body=build_vehicle_command(command, args),
    )


async def insert_vehicle(
    session: Session,
    transport: Transport,
    vehicle: str,
    node_id: str,
    *,
    force_insertion: bool = False,
) -> None:
    await send_vehicle_command(
        session,
        transport,
        vehicle,
        "insert",
        {"nodeId": node_id, "forceInsertion": force_insertion},
    )


async def extract_vehicle(session: Session, transport: Transport, vehicle: str) -> None:
    await send_vehicle_command(session, transport, vehicle, "extract")
