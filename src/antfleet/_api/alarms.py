"""Alarm list endpoint: GET /{version}/alarms."""

from __future__ import annotations

import json
import time

from antfleet._api._common import get_resource, parse_items, payload_list
from antfleet._constants import DEFAULT_ALARM_LIMIT
from antfleet._transport import Transport
from antfleet.models.alarm import Alarm
from antfleet.session import Session

ENDPOINT = "alarms"


def build_alarm_query(
    *,
    limit: int = DEFAULT_ALARM_LIMIT,
    ascending: bool = False,
    now_ms: int | None = None,
) -> dict[str, str]:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    order = "asc" if ascending else "desc"
    return {
        # cache buster
        "_": str(now_ms),
        "datarange": f"[0,{limit}]",
        "dataorderby": json.dumps([["createdat", order]], separators=(",", ":")),
    }


async def fetch_alarms(
    session: Session,
    transport: Transport,
    *,
    limit: int = DEFAULT_ALARM_LIMIT,
    ascending: bool = False,
) -> list[Alarm]:
    params = build_alarm_query(limit=limit, ascending=ascending)
    body = await get_resource(session, transport, ENDPOINT, params=params)
    items = payload_list(body, "alarms", endpoint=ENDPOINT)
    return parse_items(items, Alarm.model_validate, endpoint=ENDPOINT)
