"""Alarm model."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import field_validator

from antfleet._normalize import safe_int
from antfleet.models._base import AntBaseModel, AntEnum, AntTimestamp


class AlarmState(AntEnum):
    UNKNOWN = -1
    RAISED = 0
    IN_PROGRESS = 1
    CLOSED = 2
    CLEARED = 3


class Alarm(AntBaseModel):
    """A fleet alarm, identified by its UUID.

    Every field is overwritten on refresh, including the optional
    ``closed_at`` / ``cleared_at`` times.
    """

    IDENTITY_FIELD: ClassVar[str] = "uuid"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = (
        "uuid",
        "source_id",
        "source_type",
        "event_name",
        "alarm_message",
    )

    uuid: str = ""
    source_id: str = ""
    source_type: str = ""
    event_name: str = ""
    alarm_message: str = ""
    event_count: int = 0
    first_event_at: AntTimestamp = None
    last_event_at: AntTimestamp = None
    timestamp: AntTimestamp = None
    state: AlarmState = AlarmState.RAISED
    closed_at: AntTimestamp = None
    cleared_at: AntTimestamp = None

    @field_validator("state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> Any:
        if isinstance(value, AlarmState):
            return value
        parsed = safe_int(value)
        return AlarmState.UNKNOWN if parsed is None else parsed

    @field_validator("event_count", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> Any:
        parsed = safe_int(value)
        return 0 if parsed is None else parsed

    @property
    def event_display_name(self) -> str:
        """Last dotted segment of the event name."""
        return self.event_name.rsplit(".", 1)[-1]

    @property
    def is_open(self) -> bool:
        return self.state in (AlarmState.RAISED, AlarmState.IN_PROGRESS)
