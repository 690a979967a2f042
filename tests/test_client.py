from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from antfleet._api.alarms import build_alarm_query
from antfleet._api.login import build_login_request, parse_login_response
from antfleet._api.missions import build_mission_query, build_mission_request
from antfleet.client import AntClient
from antfleet.config import AntConfig
from antfleet.exceptions import (
    AntAuthenticationError,
    AntError,
    AntNotConnectedError,
    AntParseError,
)
from antfleet.models.mission import NavigationState
from antfleet.state.events import ResourceKind


class _FakeTransport:
    """Answers requests from a path -> body table and records every call."""

    def __init__(self, responses: dict[tuple[str, str], Any]) -> None:
        self._responses = responses
        self.calls: list[dict[str, Any]] = []

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        token: str | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
    ) -> Any:
        self.calls.append({"method": method, "url": url, "token": token, "params": params, "json": json_body})
        response = self._responses.get((method, url))
        if isinstance(response, Exception):
            raise response
        return response


BASE = "http://ant.local/wms/rest"

_LOGIN_OK = {"token": "tok-1", "apiVersion": "v2", "displayName": "Operator"}


def _config() -> AntConfig:
    return AntConfig(server="ant.local", username="admin", password="secret")


def _responses(**extra: Any) -> dict[tuple[str, str], Any]:
    table: dict[tuple[str, str], Any] = {("POST", f"{BASE}/login"): _LOGIN_OK}
    for key, value in extra.items():
        method, _, resource = key.partition("_")
        table[(method.upper(), f"{BASE}/v2/{resource.replace('__', '/')}")] = value
    return table


@pytest.mark.asyncio
async def test_fetch_before_login_raises_not_connected() -> None:
    async with AntClient(_config(), transport=_FakeTransport({})) as client:
        assert not client.is_connected
        with pytest.raises(AntNotConnectedError):
            await client.fetch(ResourceKind.VEHICLES)
        with pytest.raises(AntNotConnectedError):
            await client.cancel_mission("1")


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = AntClient(_config())
    with pytest.raises(AntError):
        await client.login()


@pytest.mark.asyncio
async def test_login_builds_session_and_sends_bearer_token() -> None:
    transport = _FakeTransport(_responses(get_vehicles={"payload": {"vehicles": [{"name": "AGV-01"}]}}))

    async with AntClient(_config(), transport=transport) as client:
        result = await client.login()
        vehicles = await client.fetch(ResourceKind.VEHICLES)

        assert result.token == "tok-1"
        assert result.display_name == "Operator"
        assert client.is_connected
        assert client.session is not None
        assert client.session.resource_url("vehicles") == f"{BASE}/v2/vehicles"

    assert [v.name for v in vehicles] == ["AGV-01"]
    login_call, vehicles_call = transport.calls
    assert login_call["json"]["apiVersion"] == {"major": 0, "minor": 1}
    assert login_call["token"] is None
    assert vehicles_call["token"] == "tok-1"
    # leaving the context drops the session
    assert not client.is_connected


@pytest.mark.asyncio
async def test_login_overrides_server_and_credentials() -> None:
    transport = _FakeTransport({("POST", "http://other:8081/wms/rest/login"): _LOGIN_OK})

    async with AntClient(AntConfig(), transport=transport) as client:
        await client.login("other:8081", "ops", "pw")

    assert client.config.server == "other:8081"
    assert transport.calls[0]["json"]["username"] == "ops"


@pytest.mark.asyncio
async def test_login_without_token_is_an_authentication_error() -> None:
    transport = _FakeTransport({("POST", f"{BASE}/login"): {"displayName": "x"}})

    async with AntClient(_config(), transport=transport) as client:
        with pytest.raises(AntAuthenticationError):
            await client.login()
        assert not client.is_connected


@pytest.mark.asyncio
async def test_transport_errors_surface_to_the_caller() -> None:
    error = AntAuthenticationError("HTTP 401", status_code=401, endpoint=f"{BASE}/v2/alarms")
    transport = _FakeTransport(_responses(get_alarms=error))

    async with AntClient(_config(), transport=transport) as client:
        await client.login()
        with pytest.raises(AntAuthenticationError) as exc_info:
            await client.fetch(ResourceKind.ALARMS)

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_malformed_payload_is_a_parse_error() -> None:
    transport = _FakeTransport(_responses(get_missions={"payload": {"missions": {"not": "a list"}}}))

    async with AntClient(_config(), transport=transport) as client:
        await client.login()
        with pytest.raises(AntParseError):
            await client.get_missions()


@pytest.mark.asyncio
async def test_fetch_dispatches_every_kind() -> None:
    transport = _FakeTransport(
        _responses(
            get_missions={"payload": {"missions": [{"missionid": 5, "navigationstate": 3}]}},
            get_alarms={"payload": {"alarms": [{"uuid": "a-1", "state": 0}]}},
            get_maps__level__1__data={
                "payload": {
                    "data": [
                        {
                            "data": {
                                "layers": [
                                    {"name": "walls", "symbols": [{"id": "W1", "coord": [0, 0]}]},
                                    {
                                        "name": "navigation",
                                        "symbols": [{"id": "N1", "name": "Dock", "coord": [1, 2]}, {"id": "N2"}],
                                    },
                                ]
                            }
                        }
                    ]
                }
            },
        )
    )

    async with AntClient(_config(), transport=transport) as client:
        await client.login()
        missions = await client.fetch(ResourceKind.MISSIONS)
        alarms = await client.fetch(ResourceKind.ALARMS)
        nodes = await client.fetch(ResourceKind.NODES)

    assert [(m.mission_id, m.navigation_state) for m in missions] == [("5", NavigationState.STARTED)]
    assert [a.uuid for a in alarms] == ["a-1"]
    assert [n.identity for n in nodes] == ["N1"]
    alarm_params = transport.calls[2]["params"]
    assert alarm_params["datarange"] == "[0,50]"


@pytest.mark.asyncio
async def test_commands_hit_the_expected_endpoints() -> None:
    transport = _FakeTransport(_responses())

    async with AntClient(_config(), transport=transport) as client:
        await client.login()
        await client.insert_vehicle("AGV 1", "N7", force_insertion=True)
        await client.extract_vehicle("AGV 1")
        await client.cancel_mission("42")
        await client.create_mission("7", "A", "B", vehicle="AGV 1")

    insert, extract, cancel, create = transport.calls[1:]
    assert insert["url"] == f"{BASE}/v2/vehicles/AGV%201/command"
    assert insert["json"] == {"command": {"name": "insert", "args": {"nodeId": "N7", "forceInsertion": True}}}
    assert extract["json"]["command"]["name"] == "extract"
    assert (cancel["method"], cancel["url"]) == ("DELETE", f"{BASE}/v2/missions/42")
    assert create["json"]["missionrequest"]["parameters"]["value"]["vehicle"] == "AGV 1"


def test_login_request_and_response_parsing() -> None:
    body = build_login_request("admin", "pw")
    assert body == {"username": "admin", "password": "pw", "isLdap": False, "apiVersion": {"major": 0, "minor": 1}}

    result = parse_login_response({"token": "t"}, "admin")
    assert (result.token, result.api_version, result.display_name) == ("t", "", "admin")

    with pytest.raises(AntParseError):
        parse_login_response(["t"], "admin")


def test_mission_query_uses_recent_selection() -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    params = build_mission_query(now=now, window=timedelta(minutes=3))
    selection = json.loads(params["dataselection"])

    assert json.loads(params["dataorderby"]) == [["createdat", "desc"]]
    assert selection["composition"] == "OR"
    assert selection["criteria"][0] == "navigationstate::int IN:0|1|3"
    assert selection["criteria"][1].startswith("arrivingtime::date GT:")
    assert "datarange" not in params


def test_mission_query_range_disables_recent_selection() -> None:
    params = build_mission_query(max_mission_id=500)

    assert params["datarange"] == "[0,500]"
    assert "dataselection" not in params
    assert "dataselection" not in build_mission_query(recent_only=False)


def test_alarm_query_and_mission_request() -> None:
    params = build_alarm_query(limit=10, ascending=True, now_ms=123)
    assert params == {"_": "123", "datarange": "[0,10]", "dataorderby": '[["createdat","asc"]]'}

    request = build_mission_request("7", "A", "B")["missionrequest"]
    assert (request["fromnode"], request["tonode"], request["priority"]) == ("A", "B", "2")
    assert request["parameters"]["value"]["vehicle"] == ""


@pytest.mark.asyncio
async def test_fetch_accepts_kind_names() -> None:
    transport = _FakeTransport(_responses(get_vehicles={"payload": {"vehicles": [{"name": "AGV-01"}]}}))

    async with AntClient(_config(), transport=transport) as client:
        await client.login()
        vehicles = await client.fetch("vehicles")

    assert [v.name for v in vehicles] == ["AGV-01"]
