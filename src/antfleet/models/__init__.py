"""Data models for ANT API responses and local records."""

from antfleet.models._base import AntBaseModel, AntEnum, AntTimestamp, parse_ant_timestamp
from antfleet.models.alarm import Alarm, AlarmState
from antfleet.models.mission import Mission, MissionType, NavigationState, TransportState
from antfleet.models.node import Node
from antfleet.models.route import MissionRoute
from antfleet.models.token import LoginResult
from antfleet.models.vehicle import OperatingState, Vehicle

__all__ = [
    "Alarm",
    "AlarmState",
    "AntBaseModel",
    "AntEnum",
    "AntTimestamp",
    "LoginResult",
    "Mission",
    "MissionRoute",
    "MissionType",
    "NavigationState",
    "Node",
    "OperatingState",
    "TransportState",
    "Vehicle",
    "parse_ant_timestamp",
]
