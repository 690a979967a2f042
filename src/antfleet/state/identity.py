"""Entity identity resolution.

Vehicles are keyed by name, missions by mission id, alarms by UUID and
nodes by id. Keys are stable across fetches of the same logical entity.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol, TypeVar


class Identified(Protocol):
    @property
    def identity(self) -> str: ...


E = TypeVar("E", bound=Identified)


def identity_key(entity: Identified) -> str:
    """Return the stable identity key of *entity*."""
    return entity.identity


def build_index(entities: Iterable[E], key: Callable[[E], str] = identity_key) -> dict[str, E]:
    """Map identity keys to entities.

    When a batch contains the same key more than once the last occurrence
    wins, while the key keeps the position of its first occurrence.
    """
    index: dict[str, E] = {}
    for entity in entities:
        index[key(entity)] = entity
    return index
