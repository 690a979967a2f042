"""In-place reconciliation of a local collection against a fresh fetch.

Entries whose identity survives a refresh are mutated field by field rather
than replaced, so anything holding a reference to them (views, selections,
detail panes) keeps pointing at live data.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol, TypeVar

from antfleet.state.events import ReconcileResult
from antfleet.state.identity import build_index, identity_key


class Reconcilable(Protocol):
    @property
    def identity(self) -> str: ...

    def update_from(self, other: object) -> bool: ...


E = TypeVar("E", bound=Reconcilable)


def reconcile(
    existing: list[E],
    fetched: Iterable[E],
    *,
    key: Callable[[E], str] = identity_key,
) -> ReconcileResult[E]:
    """Make *existing* match *fetched* by identity, mutating it in place.

    1. Entries whose key is absent from *fetched* are removed.
    2. Entries whose key is present are updated with ``update_from``.
    3. Unknown keys are appended, in fetch order, as the fetched objects
       themselves.

    Duplicate keys in *fetched* resolve to their last occurrence. The
    returned result lists only entries whose field values changed under
    ``updated``, so reconciling the same snapshot twice yields an empty
    result the second time.
    """
    current = build_index(existing, key)
    incoming = build_index(fetched, key)

    removed = [entity for k, entity in current.items() if k not in incoming]
    if removed:
        existing[:] = [entity for entity in existing if key(entity) in incoming]

    added: list[E] = []
    updated: list[E] = []
    for k, entity in incoming.items():
        target = current.get(k)
        if target is None:
            existing.append(entity)
            added.append(entity)
        elif target is not entity and target.update_from(entity):
            updated.append(target)

    return ReconcileResult(added=added, removed=removed, updated=updated)
