"""Per-state statistics over filtered views.

Statistics are always taken from what a view currently shows, never from
the raw store, and every entity lands in exactly one bucket.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from antfleet.models.alarm import Alarm, AlarmState
from antfleet.models.mission import Mission, NavigationState
from antfleet.models.vehicle import OperatingState, Vehicle


@dataclass(frozen=True, slots=True)
class MissionStatistics:
    total: int = 0
    pending: int = 0
    running: int = 0
    completed: int = 0
    rejected: int = 0
    cancelled: int = 0
    other: int = 0


@dataclass(frozen=True, slots=True)
class AlarmStatistics:
    total: int = 0
    raised: int = 0
    in_progress: int = 0
    closed: int = 0
    cleared: int = 0
    other: int = 0


@dataclass(frozen=True, slots=True)
class VehicleStatistics:
    total: int = 0
    idle: int = 0
    running: int = 0
    charging: int = 0
    error: int = 0
    maintenance: int = 0
    other: int = 0
    low_battery: int = 0
    """Not a partition bucket; vehicles at or below the low battery threshold."""


_MISSION_BUCKETS: dict[NavigationState, str] = {
    NavigationState.RECEIVED: "pending",
    NavigationState.ACCEPTED: "pending",
    NavigationState.STARTED: "running",
    NavigationState.COMPLETED: "completed",
    NavigationState.REJECTED: "rejected",
    NavigationState.CANCELLED: "cancelled",
}

_ALARM_BUCKETS: dict[AlarmState, str] = {
    AlarmState.RAISED: "raised",
    AlarmState.IN_PROGRESS: "in_progress",
    AlarmState.CLOSED: "closed",
    AlarmState.CLEARED: "cleared",
}

_VEHICLE_BUCKETS: dict[OperatingState, str] = {
    OperatingState.IDLE: "idle",
    OperatingState.RUNNING: "running",
    OperatingState.CHARGING: "charging",
    OperatingState.ERROR: "error",
    OperatingState.MAINTENANCE: "maintenance",
}


def mission_bucket(mission: Mission) -> str:
    return _MISSION_BUCKETS.get(mission.navigation_state, "other")


def alarm_bucket(alarm: Alarm) -> str:
    return _ALARM_BUCKETS.get(alarm.state, "other")


def vehicle_bucket(vehicle: Vehicle) -> str:
    return _VEHICLE_BUCKETS.get(vehicle.operating_state, "other")


def mission_statistics(missions: Iterable[Mission]) -> MissionStatistics:
    counts: dict[str, int] = {}
    total = 0
    for mission in missions:
        bucket = mission_bucket(mission)
        counts[bucket] = counts.get(bucket, 0) + 1
        total += 1
    return MissionStatistics(total=total, **counts)


def alarm_statistics(alarms: Iterable[Alarm]) -> AlarmStatistics:
    counts: dict[str, int] = {}
    total = 0
    for alarm in alarms:
        bucket = alarm_bucket(alarm)
        counts[bucket] = counts.get(bucket, 0) + 1
        total += 1
    return AlarmStatistics(total=total, **counts)


def vehicle_statistics(vehicles: Iterable[Vehicle]) -> VehicleStatistics:
    counts: dict[str, int] = {}
    total = 0
    low_battery = 0
    for vehicle in vehicles:
        bucket = vehicle_bucket(vehicle)
        counts[bucket] = counts.get(bucket, 0) + 1
        total += 1
        if vehicle.has_low_battery:
            low_battery += 1
    return VehicleStatistics(total=total, low_battery=low_battery, **counts)
