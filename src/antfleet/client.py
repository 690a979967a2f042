"""High-level async client for the ANT fleet-management REST API."""

from __future__ import annotations

import dataclasses
import logging
from datetime import timedelta
from typing import Any

import aiohttp

from antfleet._api import alarms as _alarms_api
from antfleet._api import login as _login_api
from antfleet._api import missions as _missions_api
from antfleet._api import nodes as _nodes_api
from antfleet._api import vehicles as _vehicles_api
from antfleet._transport import HttpTransport, Transport
from antfleet.config import AntConfig
from antfleet.exceptions import AntError, AntNotConnectedError
from antfleet.models.alarm import Alarm
from antfleet.models.mission import Mission
from antfleet.models.node import Node
from antfleet.models.token import LoginResult
from antfleet.models.vehicle import Vehicle
from antfleet.session import Session
from antfleet.state.events import ResourceKind

_logger = logging.getLogger(__name__)


class AntClient:
    """Async client for the ANT server.

    Usage::

        async with AntClient(config) as client:
            await client.login()
            vehicles = await client.get_vehicles()
    """

    def __init__(
        self,
        config: AntConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._session: Session | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AntClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.disconnect()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    @property
    def config(self) -> AntConfig:
        return self._config

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(
        self,
        server: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> LoginResult:
        """Authenticate and open a session.

        Arguments override the configured server and credentials; the
        overrides are kept for later logins.
        """
        overrides = {
            name: value
            for name, value in (("server", server), ("username", username), ("password", password))
            if value is not None
        }
        if overrides:
            self._config = dataclasses.replace(self._config, **overrides)

        transport = self._require_transport()
        base_url = self._config.base_url
        self._session = None
        result = await _login_api.login(transport, base_url, self._config.username, self._config.password)
        self._session = Session(
            base_url=base_url,
            token=result.token,
            api_version=result.api_version,
            display_name=result.display_name,
        )
        _logger.info("Logged in to %s as %s", self._config.server, result.display_name)
        return result

    def disconnect(self) -> None:
        """Forget the session; later calls raise :class:`AntNotConnectedError`."""
        if self._session is not None:
            _logger.info("Disconnected from %s", self._config.server)
        self._session = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise AntError("Client not initialized. Use 'async with AntClient(...) as client:'")
        return self._transport

    def _require_session(self) -> tuple[Session, Transport]:
        if self._session is None:
            raise AntNotConnectedError("Not connected to an ANT server; call login() first")
        return self._session, self._require_transport()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def fetch(self, kind: ResourceKind | str) -> list[Any]:
        """Fetch the current snapshot for one resource kind."""
        kind = ResourceKind(kind)
        if kind is ResourceKind.VEHICLES:
            return await self.get_vehicles()
        if kind is ResourceKind.MISSIONS:
            return await self.get_missions()
        if kind is ResourceKind.ALARMS:
            return await self.get_alarms()
        if kind is ResourceKind.NODES:
            return await self.get_nodes()
        raise ValueError(f"Unsupported resource kind: {kind!r}")

    async def get_vehicles(self) -> list[Vehicle]:
        session, transport = self._require_session()
        return await _vehicles_api.fetch_vehicles(session, transport)

    async def get_missions(self, *, recent_only: bool = True, max_mission_id: int | None = None) -> list[Mission]:
        """Fetch missions, newest first.

        With ``recent_only`` the server returns open missions plus those
        that arrived within the configured recent window.
        """
        session, transport = self._require_session()
        return await _missions_api.fetch_missions(
            session,
            transport,
            recent_only=recent_only,
            max_mission_id=max_mission_id,
            window=timedelta(seconds=self._config.recent_window),
        )

    async def get_alarms(self, *, limit: int | None = None, ascending: bool = False) -> list[Alarm]:
        session, transport = self._require_session()
        return await _alarms_api.fetch_alarms(
            session,
            transport,
            limit=limit if limit is not None else self._config.alarm_limit,
            ascending=ascending,
        )

    async def get_nodes(self) -> list[Node]:
        session, transport = self._require_session()
        return await _nodes_api.fetch_nodes(session, transport)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_mission(
        self,
        mission_type: str,
        from_node: str,
        to_node: str,
        *,
        vehicle: str | None = None,
    ) -> Any:
        session, transport = self._require_session()
        _logger.info("Creating %s mission %s -> %s", mission_type, from_node, to_node)
        return await _missions_api.create_mission(
            session, transport, mission_type, from_node, to_node, vehicle=vehicle
        )

    async def cancel_mission(self, mission_id: str) -> None:
        session, transport = self._require_session()
        _logger.info("Cancelling mission %s", mission_id)
        await _missions_api.cancel_mission(session, transport, mission_id)

    async def insert_vehicle(self, name: str, node_id: str, *, force_insertion: bool = False) -> None:
        session, transport = self._require_session()
        _logger.info("Inserting vehicle %s at node %s", name, node_id)
        await _vehicles_api.insert_vehicle(session, transport, name, node_id, force_insertion=force_insertion)

    async def extract_vehicle(self, name: str) -> None:
        session, transport = self._require_session()
        _logger.info("Extracting vehicle %s", name)
        await _vehicles_api.extract_vehicle(session, transport, name)
