"""Navigation node model (read-only reference data)."""

from __future__ import annotations

from typing import Any, ClassVar

from antfleet._normalize import safe_float
from antfleet.models._base import AntBaseModel


class Node(AntBaseModel):
    """A navigation node of the facility map.

    Nodes are not reconciled incrementally; a node refresh replaces the
    whole collection.
    """

    IDENTITY_FIELD: ClassVar[str] = "id"
    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ("id", "name")

    id: str = ""
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    is_available: bool = True

    @property
    def identity(self) -> str:
        return self.id or self.name

    @classmethod
    def from_symbol(cls, symbol: dict[str, Any]) -> Node | None:
        """Build a node from a map layer symbol; ``None`` without coordinates."""
        coord = symbol.get("coord")
        if not isinstance(coord, list) or len(coord) < 2:
            return None
        return cls.model_validate(
            {
                "id": symbol.get("id") or symbol.get("symbolid"),
                "name": symbol.get("name"),
                "x": safe_float(coord[0]) or 0.0,
                "y": safe_float(coord[1]) or 0.0,
                "raw": symbol,
            }
        )
