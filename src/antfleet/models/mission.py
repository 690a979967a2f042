"""Mission model and its state enums."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import Field, field_validator

from antfleet._normalize import safe_int
from antfleet.models._base import AntBaseModel, AntEnum, AntTimestamp

#: Sort value used for mission ids that are not numeric.
NON_NUMERIC_MISSION_ID = -(2**31)


class NavigationState(AntEnum):
    """Mission navigation lifecycle as reported by the fleet server."""

    UNKNOWN = -1
    RECEIVED = 0
    ACCEPTED = 1
    REJECTED = 2
    STARTED = 3
    COMPLETED = 4
    CANCELLED = 5


class TransportState(AntEnum):
    """Mission transport lifecycle (codes 2 and 12-14 are unused)."""

    UNKNOWN = -1
    NEW = 0
    ACCEPTED = 1
    ASSIGNED = 3
    MOVING = 4
    TRANSPORTING = 5
    SELECTING = 6
    DELIVERING = 7
    COMPLETED = 8
    CANCELLED = 9
    ERROR = 10
    CANCELLING = 11
    PAUSED = 15


class MissionType(AntEnum):
    UNKNOWN = -1
    TRANSPORT_TO_STATION = 0
    MOVE_TO_STATION = 1
    WAITING_LANE = 2
    TRANSPORT_TO_NODE = 7
    MOVE_TO_NODE = 8
    STATION_TO_STATION = 9
    MOVE_VEHICLE_TO_NODE = 10
    MOVE_TO_LOOP = 12


class Mission(AntBaseModel):
    """A transport mission, identified by its server-assigned id."""

    IDENTITY_FIELD: ClassVar[str] = "mission_id"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        "mission_id",
        "mission_type",
        "from_node",
        "to_node",
        "assigned_vehicle",
        "navigation_state",
        "transport_state",
    )

    mission_id: str = ""
    mission_type: MissionType = MissionType.TRANSPORT_TO_STATION
    from_node: str = ""
    to_node: str = ""
    assigned_vehicle: str = Field(default="", alias="assignedto")
    navigation_state: NavigationState = NavigationState.RECEIVED
    transport_state: TransportState = TransportState.NEW
    priority: int = 0
    created_at: AntTimestamp = None
    arriving_time: AntTimestamp = None

    @field_validator("mission_type", "navigation_state", "transport_state", mode="before")
    @classmethod
    def _coerce_codes(cls, value: Any) -> Any:
        if isinstance(value, AntEnum):
            return value
        parsed = safe_int(value)
        return -1 if parsed is None else parsed

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return 0 if parsed is None else parsed

    @property
    def queue_timestamp(self) -> datetime | None:
        """Arriving time, falling back to the creation time."""
        return self.arriving_time if self.arriving_time is not None else self.created_at

    @property
    def can_cancel(self) -> bool:
        return self.navigation_state in (NavigationState.ACCEPTED, NavigationState.STARTED)

    @property
    def mission_id_sort(self) -> int:
        try:
            return int(self.mission_id)
        except ValueError:
            return NON_NUMERIC_MISSION_ID

    def update_from(self, other: AntBaseModel) -> bool:
        """Copy *other* onto this mission.

        Timestamps are only overwritten when the incoming value is set, so a
        partial payload cannot erase a known time. A mission still lacking an
        arriving time afterwards takes its creation time.
        """
        if not isinstance(other, Mission):
            raise TypeError(f"cannot update Mission from {type(other).__name__}")
        changed = False
        for name in ("mission_type", "from_node", "to_node", "assigned_vehicle",
                     "navigation_state", "transport_state", "priority"):
            changed = self._assign(name, getattr(other, name)) or changed

        if other.created_at is not None:
            changed = self._assign("created_at", other.created_at) or changed
        if other.arriving_time is not None:
            changed = self._assign("arriving_time", other.arriving_time) or changed
        elif self.arriving_time is None and self.created_at is not None:
            changed = self._assign("arriving_time", self.created_at) or changed

        self.raw = other.raw
        return changed
