"""Navigation node endpoint: GET /{version}/maps/level/1/data.

Nodes are the symbols of the ``navigation`` layer of every map returned
under ``payload.data[].data.layers[]``.
"""

from __future__ import annotations

from antfleet._api._common import get_resource, parse_items, payload_list
from antfleet._constants import NAVIGATION_LAYER
from antfleet._transport import Transport
from antfleet.models.node import Node
from antfleet.session import Session

ENDPOINT = "maps/level/1/data"


def _navigation_symbols(maps: list[dict]) -> list[dict]:
    symbols: list[dict] = []
    for entry in maps:
        inner = entry.get("data")
        layers = inner.get("layers") if isinstance(inner, dict) else None
        if not isinstance(layers, list):
            continue
        for layer in layers:
            if not isinstance(layer, dict) or layer.get("name") != NAVIGATION_LAYER:
                continue
            found = layer.get("symbols")
            if isinstance(found, list):
                symbols.extend(s for s in found if isinstance(s, dict))
    return symbols


async def fetch_nodes(session: Session, transport: Transport) -> list[Node]:
    body = await get_resource(session, transport, ENDPOINT)
    symbols = _navigation_symbols(payload_list(body, "data", endpoint=ENDPOINT))
    nodes = parse_items(symbols, Node.from_symbol, endpoint=ENDPOINT)
    return [node for node in nodes if node is not None]
