"""antfleet - Async Python client and live state engine for ANT fleet servers."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("antfleet")
except PackageNotFoundError:
    __version__ = "0+local"
from antfleet.client import AntClient
from antfleet.config import AntConfig
from antfleet.exceptions import (
    AntAuthenticationError,
    AntConfigError,
    AntError,
    AntNetworkError,
    AntNotConnectedError,
    AntParseError,
    AntServerError,
    AntStorageError,
)
from antfleet.models import (
    Alarm,
    AlarmState,
    LoginResult,
    Mission,
    MissionRoute,
    MissionType,
    NavigationState,
    Node,
    OperatingState,
    TransportState,
    Vehicle,
)
from antfleet.monitor import FleetMonitor
from antfleet.poller import PollScheduler, RefreshReport, RefreshStatus, SchedulerState
from antfleet.state.events import ResourceKind
from antfleet.state.filters import AlarmFilter, MissionFilter, MissionFilterPreset, SortKey, VehicleFilter
from antfleet.state.stats import mission_statistics
from antfleet.state.store import ReconciledStore
from antfleet.state.view import FilteredView
from antfleet.storage import RouteStorage

__all__ = [
    "__version__",
    "Alarm",
    "AlarmFilter",
    "AlarmState",
    "AntAuthenticationError",
    "AntClient",
    "AntConfig",
    "AntConfigError",
    "AntError",
    "AntNetworkError",
    "AntNotConnectedError",
    "AntParseError",
    "AntServerError",
    "AntStorageError",
    "FilteredView",
    "FleetMonitor",
    "LoginResult",
    "Mission",
    "MissionFilter",
    "MissionFilterPreset",
    "MissionRoute",
    "MissionType",
    "NavigationState",
    "Node",
    "OperatingState",
    "PollScheduler",
    "ReconciledStore",
    "RefreshReport",
    "RefreshStatus",
    "ResourceKind",
    "RouteStorage",
    "SchedulerState",
    "SortKey",
    "TransportState",
    "Vehicle",
    "VehicleFilter",
    "mission_statistics",
]
