"""Vehicle model.

Vehicles arrive from ``GET /vehicles`` as nested objects: location data
under ``location``, the current action under ``action`` and telemetry as a
``state`` map whose values are arrays keyed by dotted names
(``"battery.info": [level, voltage]``). :meth:`Vehicle.from_payload`
flattens that shape into typed fields once, at the fetch boundary.
"""

from __future__ import annotations

import math
from typing import Any, ClassVar

from pydantic import Field, field_validator

from antfleet._constants import LOW_BATTERY_THRESHOLD
from antfleet._normalize import safe_float, safe_int
from antfleet.models._base import AntBaseModel, AntEnum, AntTimestamp


class OperatingState(AntEnum):
    UNKNOWN = -1
    IDLE = 0
    RUNNING = 1
    CHARGING = 2
    ERROR = 3
    MAINTENANCE = 4


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _state_item(state: dict[str, Any], key: str, index: int = 0) -> str:
    items = _as_list(state.get(key))
    if len(items) > index and items[index] is not None:
        return str(items[index])
    return ""


def _state_strings(state: dict[str, Any], key: str, *, skip_empty: bool = False) -> list[str]:
    items = [str(item) for item in _as_list(state.get(key)) if item is not None]
    if skip_empty:
        return [item for item in items if item]
    return items


def _pair(value: Any) -> list[float]:
    items = _as_list(value)
    if len(items) < 2:
        return []
    return [safe_float(items[0]) or 0.0, safe_float(items[1]) or 0.0]


def _battery_level(state: dict[str, Any]) -> int:
    level = safe_float(_state_item(state, "battery.info"))
    if level is None or math.isinf(level):
        return 0
    return int(level)


class Vehicle(AntBaseModel):
    """A vehicle known to the fleet server, identified by its name."""

    IDENTITY_FIELD: ClassVar[str] = "name"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        "name",
        "location",
        "mission_id",
        "vehicle_state",
        "ip_address",
        "current_node_name",
    )

    name: str = ""
    operating_state: OperatingState = OperatingState.IDLE
    location: str = "Unknown"
    mission_id: str = ""
    battery_level: int = 0
    alarms: list[str] = Field(default_factory=list)
    last_update: AntTimestamp = None
    ip_address: str = ""
    is_simulated: bool = False
    is_loaded: bool = False
    payload: str = ""
    coordinates: list[float] = Field(default_factory=list)
    course: float = 0.0
    current_node_name: str = ""
    current_node_id: int = -1
    traveled_distance: int = 0
    cumulative_uptime: int = 0
    path: list[str] = Field(default_factory=list)
    vehicle_state: str = ""
    coverage: bool = False
    port: int = 0
    is_omni: bool = False
    force_charge: bool = False

    action_name: str = ""
    action_source_id: str = ""
    action_source_type: str = ""
    arrival_date: str = ""
    abs_arrival_date: str = ""
    action_node_id: str = ""

    map_name: str = ""
    group_name: str = ""
    uncertainty: list[float] = Field(default_factory=list)

    connection_ok: str = ""
    battery_max_temp: str = ""
    battery_voltage: str = ""
    vehicle_type: str = ""
    lock_uuid: str = ""
    lock_owner_app: str = ""
    lock_owner_pc: str = ""
    lock_owner_user: str = ""
    mission_from: str = ""
    mission_to: str = ""
    mission_final: str = ""
    errors: list[str] = Field(default_factory=list)
    mission_blocked: bool = False
    body_shape: list[str] = Field(default_factory=list)
    traffic_info: list[str] = Field(default_factory=list)
    mission_progress: list[str] = Field(default_factory=list)
    error_bits: list[str] = Field(default_factory=list)
    shared_memory_out: list[str] = Field(default_factory=list)
    shared_memory_in: list[str] = Field(default_factory=list)
    vehicle_shape: list[str] = Field(default_factory=list)
    error_details_label: list[str] = Field(default_factory=list)
    messages: list[str] = Field(default_factory=list)
    error_details: list[str] = Field(default_factory=list)

    @property
    def has_low_battery(self) -> bool:
        return self.battery_level <= LOW_BATTERY_THRESHOLD

    @property
    def has_alarms(self) -> bool:
        return bool(self.alarms)

    @field_validator("operating_state", mode="before")
    @classmethod
    def _coerce_operating_state(cls, value: Any) -> Any:
        if isinstance(value, OperatingState):
            return value
        parsed = safe_int(value)
        return OperatingState.UNKNOWN if parsed is None else parsed

    @field_validator(
        "battery_level",
        "current_node_id",
        "traveled_distance",
        "cumulative_uptime",
        "port",
        mode="before",
    )
    @classmethod
    def _coerce_ints(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return value if parsed is None else parsed

    @field_validator("course", mode="before")
    @classmethod
    def _coerce_course(cls, value: Any) -> Any:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Vehicle:
        """Build a vehicle from one entry of ``payload.vehicles``."""
        location = _as_dict(data.get("location"))
        current_node = _as_dict(location.get("currentnode"))
        state = _as_dict(data.get("state"))
        action = _as_dict(data.get("action"))
        action_args = _as_dict(action.get("args"))

        node_name = current_node.get("name")
        blocked = _state_item(state, "vehicle.state", 1)

        flat: dict[str, Any] = {
            "name": data.get("name"),
            "operating_state": data.get("operatingstate"),
            "location": node_name if node_name is not None else "Unknown",
            "mission_id": data.get("missionid"),
            "battery_level": _battery_level(state),
            "alarms": [str(a) for a in _as_list(data.get("alarms")) if a is not None and str(a)],
            "last_update": data.get("timestamp"),
            "ip_address": data.get("ipaddress"),
            "is_simulated": data.get("issimulated"),
            "is_loaded": data.get("isloaded"),
            "payload": data.get("payload"),
            "coordinates": _pair(location.get("coord")),
            "course": location.get("course"),
            "current_node_name": node_name,
            "current_node_id": location.get("currentnodeid"),
            "traveled_distance": data.get("traveleddistance"),
            "cumulative_uptime": data.get("cumulativeuptime"),
            "path": [str(p) for p in _as_list(data.get("path")) if p is not None and str(p)],
            "vehicle_state": _state_item(state, "vehicle.state"),
            "coverage": data.get("coverage"),
            "port": data.get("port"),
            "is_omni": data.get("isOmni"),
            "force_charge": data.get("forceCharge"),
            "action_name": action.get("name"),
            "action_source_id": action.get("sourceid"),
            "action_source_type": action.get("sourcetype"),
            "arrival_date": action_args.get("arrivaldate"),
            "abs_arrival_date": action_args.get("absarrivaldate"),
            "action_node_id": action_args.get("nodeid"),
            "map_name": location.get("map"),
            "group_name": location.get("group"),
            "uncertainty": _pair(location.get("uncertainty")),
            "connection_ok": _state_item(state, "connection.ok"),
            "battery_max_temp": _state_item(state, "battery.info.maxtemperature"),
            "battery_voltage": _state_item(state, "battery.info", 1),
            "vehicle_type": _state_item(state, "vehicle.type"),
            "lock_uuid": _state_item(state, "lock.UUID"),
            "lock_owner_app": _state_item(state, "lock.owner", 0),
            "lock_owner_pc": _state_item(state, "lock.owner", 1),
            "lock_owner_user": _state_item(state, "lock.owner", 2),
            "mission_from": _state_item(state, "mission.info", 0),
            "mission_to": _state_item(state, "mission.info", 1),
            "mission_final": _state_item(state, "mission.info", 2),
            "errors": _state_strings(state, "errors", skip_empty=True),
            "mission_blocked": blocked.lower() == "true",
            "body_shape": _state_strings(state, "body.shape"),
            "traffic_info": _state_strings(state, "traffic.info"),
            "mission_progress": _state_strings(state, "mission.progress"),
            "error_bits": _state_strings(state, "error.bits"),
            "shared_memory_out": _state_strings(state, "sharedMemory.out"),
            "shared_memory_in": _state_strings(state, "sharedMemory.in"),
            "vehicle_shape": _state_strings(state, "vehicle.shape"),
            "error_details_label": _state_strings(state, "errorDetailsLabel"),
            "messages": _state_strings(state, "messages"),
            "error_details": _state_strings(state, "errorDetails"),
            "raw": data,
        }
        return cls.model_validate(flat)
