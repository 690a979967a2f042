"""Headless fleet monitor.

:class:`FleetMonitor` wires an :class:`~antfleet.client.AntClient` to one
reconciled store per resource kind, the default filtered views on top of
them, a :class:`~antfleet.poller.PollScheduler` and the local route storage.
Polling runs while the monitor is connected. Commands are followed by a
manual refresh of the kinds they affect.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

from antfleet.client import AntClient
from antfleet.exceptions import AntError
from antfleet.models.alarm import Alarm
from antfleet.models.mission import Mission
from antfleet.models.node import Node
from antfleet.models.route import MissionRoute
from antfleet.models.token import LoginResult
from antfleet.models.vehicle import Vehicle
from antfleet.poller import PollScheduler, RefreshReport
from antfleet.state.events import ResourceKind
from antfleet.state.filters import (
    DEFAULT_ALARM_SORT,
    DEFAULT_MISSION_SORT,
    DEFAULT_VEHICLE_SORT,
    AlarmFilter,
    MissionFilter,
    VehicleFilter,
)
from antfleet.state.stats import (
    AlarmStatistics,
    MissionStatistics,
    VehicleStatistics,
    alarm_statistics,
    mission_statistics,
    vehicle_statistics,
)
from antfleet.state.store import ReconciledStore
from antfleet.state.view import FilteredView
from antfleet.storage import RouteStorage

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FleetMonitor:
    """Live, filtered picture of one ANT server.

    Parameters
    ----------
    client : AntClient
        An entered client; the monitor does not own its lifecycle.
    storage : RouteStorage or None
        Route persistence, defaults to the configured data directory.
    clock : callable
        Current time for the rolling mission window.
    """

    def __init__(
        self,
        client: AntClient,
        *,
        storage: RouteStorage | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        config = client.config
        self._client = client
        self.vehicles: ReconciledStore[Vehicle] = ReconciledStore(ResourceKind.VEHICLES)
        self.missions: ReconciledStore[Mission] = ReconciledStore(ResourceKind.MISSIONS)
        self.alarms: ReconciledStore[Alarm] = ReconciledStore(ResourceKind.ALARMS)
        self.nodes: ReconciledStore[Node] = ReconciledStore(ResourceKind.NODES)

        self.vehicle_view: FilteredView[Vehicle, VehicleFilter] = FilteredView(
            self.vehicles, filter=VehicleFilter(), sort=DEFAULT_VEHICLE_SORT, clock=clock
        )
        self.mission_view: FilteredView[Mission, MissionFilter] = FilteredView(
            self.missions,
            filter=MissionFilter(recent_window=timedelta(seconds=config.recent_window)),
            sort=DEFAULT_MISSION_SORT,
            clock=clock,
        )
        self.alarm_view: FilteredView[Alarm, AlarmFilter] = FilteredView(
            self.alarms, filter=AlarmFilter(), sort=DEFAULT_ALARM_SORT, clock=clock
        )

        self.scheduler = PollScheduler(
            client,
            {
                ResourceKind.VEHICLES: self.vehicles,
                ResourceKind.MISSIONS: self.missions,
                ResourceKind.ALARMS: self.alarms,
                ResourceKind.NODES: self.nodes,
            },
            interval=config.poll_interval,
        )

        self._storage = storage if storage is not None else RouteStorage(config.data_dir)
        self.routes: list[MissionRoute] = self._storage.load()

    @property
    def client(self) -> AntClient:
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(
        self,
        server: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> LoginResult:
        """Log in, load nodes and vehicles, then start polling.

        Login errors propagate and leave the monitor disconnected.
        """
        self.scheduler.stop()
        result = await self._client.login(server, username, password)
        await self.scheduler.refresh_all([ResourceKind.NODES, ResourceKind.VEHICLES])
        self.scheduler.start()
        return result

    async def disconnect(self) -> None:
        await self.scheduler.aclose()
        self._client.disconnect()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def insert_vehicle(self, name: str, node_id: str, *, force_insertion: bool = False) -> RefreshReport:
        await self._client.insert_vehicle(name, node_id, force_insertion=force_insertion)
        return await self.scheduler.refresh(ResourceKind.VEHICLES)

    async def extract_vehicle(self, name: str) -> RefreshReport:
        await self._client.extract_vehicle(name)
        return await self.scheduler.refresh(ResourceKind.VEHICLES)

    async def create_mission(
        self,
        mission_type: str,
        from_node: str,
        to_node: str,
        *,
        vehicle: str | None = None,
    ) -> RefreshReport:
        await self._client.create_mission(mission_type, from_node, to_node, vehicle=vehicle)
        return await self.scheduler.refresh(ResourceKind.MISSIONS)

    async def cancel_mission(self, mission_id: str) -> RefreshReport:
        mission = self.missions.get(mission_id)
        if mission is not None and not mission.can_cancel:
            raise AntError(f"Mission {mission_id} is {mission.navigation_state.name} and cannot be cancelled")
        await self._client.cancel_mission(mission_id)
        return await self.scheduler.refresh(ResourceKind.MISSIONS)

    async def run_route(self, route: MissionRoute, *, vehicle: str | None = None) -> RefreshReport:
        """Create one mission per consecutive node pair of *route*."""
        if not route.is_valid:
            raise ValueError(f"Route {route.name!r} needs a name and at least two nodes")
        for from_node, to_node in zip(route.nodes, route.nodes[1:]):
            await self._client.create_mission(route.mission_type, from_node, to_node, vehicle=vehicle)
        return await self.scheduler.refresh(ResourceKind.MISSIONS)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def mission_statistics(self) -> MissionStatistics:
        return mission_statistics(self.mission_view)

    def alarm_statistics(self) -> AlarmStatistics:
        return alarm_statistics(self.alarm_view)

    def vehicle_statistics(self) -> VehicleStatistics:
        return vehicle_statistics(self.vehicle_view)

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def add_route(self, name: str, nodes: Sequence[str], mission_type: str) -> MissionRoute:
        route = MissionRoute(name=name, nodes=list(nodes), mission_type=mission_type, is_active=True)
        if not route.is_valid or not route.mission_type:
            raise ValueError("A route needs a name, a mission type and at least two nodes")
        self.routes.append(route)
        self._storage.save(self.routes)
        return route

    def delete_route(self, route_id: str) -> bool:
        remaining = [route for route in self.routes if route.id != route_id]
        if len(remaining) == len(self.routes):
            return False
        self.routes = remaining
        self._storage.save(self.routes)
        return True

    def import_routes(self, path: Path) -> list[MissionRoute]:
        imported = self._storage.import_csv(path)
        self.routes.extend(imported)
        self._storage.save(self.routes)
        _logger.info("Imported %d routes from %s", len(imported), path)
        return imported

    def export_routes(self, path: Path) -> None:
        self._storage.export_csv(self.routes, path)
