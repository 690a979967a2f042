"""Locally stored mission route."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def _new_route_id() -> str:
    return str(uuid.uuid4())


class MissionRoute(BaseModel):
    """An operator-defined ordered list of nodes for mission creation."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: str = Field(default_factory=_new_route_id)
    name: str = ""
    nodes: list[str] = Field(default_factory=list)
    mission_type: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    is_active: bool = False

    @property
    def is_valid(self) -> bool:
        """A route needs a name and at least two nodes."""
        return bool(self.name) and len(self.nodes) >= 2
