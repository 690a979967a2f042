"""Change notifications published by stores and views."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

E = TypeVar("E")


class ResourceKind(StrEnum):
    VEHICLES = "vehicles"
    MISSIONS = "missions"
    ALARMS = "alarms"
    NODES = "nodes"


class ChangeKind(StrEnum):
    RECONCILED = "reconciled"
    REPLACED = "replaced"
    CLEARED = "cleared"
    RECOMPUTED = "recomputed"


@dataclass(frozen=True, slots=True)
class ReconcileResult(Generic[E]):
    """What a reconciliation did to a collection."""

    added: list[E] = field(default_factory=list)
    removed: list[E] = field(default_factory=list)
    updated: list[E] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.updated)


@dataclass(frozen=True, slots=True)
class StoreChange(Generic[E]):
    """A change notification for one resource collection."""

    kind: ChangeKind
    resource: ResourceKind
    result: ReconcileResult[E] = field(default_factory=ReconcileResult)


Listener = Callable[[StoreChange[E]], None]
Unsubscribe = Callable[[], None]
