"""Filter criteria and sort keys for derived views.

Filters are frozen dataclasses; a view swaps in a new filter object (see
:meth:`antfleet.state.view.FilteredView.update_filter`) and recomputes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any, ClassVar

from antfleet._constants import DEFAULT_RECENT_WINDOW
from antfleet.models.alarm import AlarmState
from antfleet.models.mission import NavigationState
from antfleet.models.vehicle import OperatingState


@dataclass(frozen=True, slots=True)
class SortKey:
    """One sort criterion; ``field`` may name a model field or property."""

    field: str
    descending: bool = False


def _aware(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _searchable_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return f"{value.name} {value.value}"
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (list, tuple)):
        return " ".join(_searchable_text(v) for v in value)
    return str(value)


@dataclass(frozen=True)
class EntityFilter:
    """Criteria shared by every entity filter.

    ``search_text`` matches case-insensitively as a substring of
    ``search_field`` or, when that is ``None``, of any of the entity's
    search fields. ``start``/``end`` bound the filter's timestamp field;
    bounds given in the wrong order are swapped.
    """

    TIMESTAMP_FIELD: ClassVar[str | None] = None

    search_text: str = ""
    search_field: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @property
    def has_time_range(self) -> bool:
        return self.start is not None or self.end is not None

    def time_bounds(self) -> tuple[datetime | None, datetime | None]:
        start, end = _aware(self.start), _aware(self.end)
        if start is not None and end is not None and start > end:
            start, end = end, start
        return start, end

    def matches(self, entity: Any, now: datetime) -> bool:
        return self.matches_state(entity, now) and self.matches_time(entity) and self.matches_search(entity)

    def matches_state(self, entity: Any, now: datetime) -> bool:
        return True

    def matches_time(self, entity: Any) -> bool:
        if not self.has_time_range or self.TIMESTAMP_FIELD is None:
            return True
        stamp = _aware(getattr(entity, self.TIMESTAMP_FIELD, None))
        if stamp is None:
            return False
        start, end = self.time_bounds()
        if start is not None and stamp < start:
            return False
        return end is None or stamp <= end

    def matches_search(self, entity: Any) -> bool:
        needle = self.search_text.strip().casefold()
        if not needle:
            return True
        fields = (self.search_field,) if self.search_field else getattr(entity, "SEARCH_FIELDS", ())
        return any(needle in _searchable_text(getattr(entity, name, None)).casefold() for name in fields)


class MissionFilterPreset(StrEnum):
    DEFAULT = "default"
    ALL = "all"
    ACTIVE = "active"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


_PRESET_STATES: dict[MissionFilterPreset, frozenset[NavigationState] | None] = {
    MissionFilterPreset.DEFAULT: frozenset(
        {
            NavigationState.RECEIVED,
            NavigationState.ACCEPTED,
            NavigationState.STARTED,
            NavigationState.COMPLETED,
        }
    ),
    MissionFilterPreset.ALL: None,
    MissionFilterPreset.ACTIVE: frozenset(
        {NavigationState.RECEIVED, NavigationState.ACCEPTED, NavigationState.STARTED}
    ),
    MissionFilterPreset.PENDING: frozenset({NavigationState.RECEIVED, NavigationState.ACCEPTED}),
    MissionFilterPreset.RUNNING: frozenset({NavigationState.STARTED}),
    MissionFilterPreset.COMPLETED: frozenset({NavigationState.COMPLETED}),
    MissionFilterPreset.CANCELLED: frozenset({NavigationState.CANCELLED}),
    MissionFilterPreset.REJECTED: frozenset({NavigationState.REJECTED}),
}


@dataclass(frozen=True)
class MissionFilter(EntityFilter):
    """Mission criteria.

    The ``DEFAULT`` preset shows open missions plus completed ones whose
    queue timestamp lies within ``recent_window`` of now. Setting a time
    bound replaces that rolling window.
    """

    TIMESTAMP_FIELD: ClassVar[str | None] = "queue_timestamp"

    preset: MissionFilterPreset = MissionFilterPreset.DEFAULT
    recent_window: timedelta = DEFAULT_RECENT_WINDOW

    def matches_state(self, entity: Any, now: datetime) -> bool:
        states = _PRESET_STATES[self.preset]
        state = entity.navigation_state
        if states is not None and state not in states:
            return False
        if self.preset is not MissionFilterPreset.DEFAULT or self.has_time_range:
            return True
        if state != NavigationState.COMPLETED:
            return True
        stamp = _aware(entity.queue_timestamp)
        return stamp is not None and stamp >= now - self.recent_window


@dataclass(frozen=True)
class AlarmFilter(EntityFilter):
    TIMESTAMP_FIELD: ClassVar[str | None] = "timestamp"

    states: frozenset[AlarmState] | None = None

    def matches_state(self, entity: Any, now: datetime) -> bool:
        return self.states is None or entity.state in self.states


@dataclass(frozen=True)
class VehicleFilter(EntityFilter):
    TIMESTAMP_FIELD: ClassVar[str | None] = "last_update"

    states: frozenset[OperatingState] | None = None
    low_battery_only: bool = False

    def matches_state(self, entity: Any, now: datetime) -> bool:
        if self.states is not None and entity.operating_state not in self.states:
            return False
        return not self.low_battery_only or entity.has_low_battery


DEFAULT_MISSION_SORT: tuple[SortKey, ...] = (SortKey("mission_id_sort", descending=True),)
DEFAULT_ALARM_SORT: tuple[SortKey, ...] = (SortKey("timestamp", descending=True),)
DEFAULT_VEHICLE_SORT: tuple[SortKey, ...] = (SortKey("name"),)

