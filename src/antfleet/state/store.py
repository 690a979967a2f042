"""Observable, reconciled in-memory collections.

A :class:`ReconciledStore` is the only owner of its entity list. Every
mutation goes through :meth:`ReconciledStore.reconcile` (incremental,
identity preserving) or :meth:`ReconciledStore.replace` (wholesale, used
for reference data such as nodes) and is announced to subscribers.

Stores are not thread-safe. They are meant to be mutated from a single
event loop, which is where the poll scheduler applies fetch results.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

from antfleet.state.events import ChangeKind, Listener, ReconcileResult, ResourceKind, StoreChange, Unsubscribe
from antfleet.state.identity import build_index, identity_key
from antfleet.state.reconcile import Reconcilable, reconcile

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Reconcilable)


class ReconciledStore(Generic[E]):
    """Identity-keyed collection for one resource kind."""

    def __init__(self, resource: ResourceKind) -> None:
        self.resource = resource
        self._items: list[E] = []
        self._listeners: list[Listener[E]] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(tuple(self._items))

    def __contains__(self, key: object) -> bool:
        return any(identity_key(item) == key for item in self._items)

    @property
    def items(self) -> tuple[E, ...]:
        """Snapshot of the current entities in collection order."""
        return tuple(self._items)

    def get(self, key: str) -> E | None:
        for item in self._items:
            if identity_key(item) == key:
                return item
        return None

    def keys(self) -> list[str]:
        return [identity_key(item) for item in self._items]

    def subscribe(self, listener: Listener[E]) -> Unsubscribe:
        """Register *listener*; call the returned function to unregister."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def reconcile(self, fetched: Iterable[E]) -> ReconcileResult[E]:
        """Merge a fetched snapshot into the store.

        Subscribers are notified after every call, even when nothing
        changed, so time-dependent views get a chance to recompute.
        """
        result = reconcile(self._items, fetched)
        if result.changed:
            _logger.debug(
                "%s reconciled: +%d -%d ~%d (total %d)",
                self.resource,
                len(result.added),
                len(result.removed),
                len(result.updated),
                len(self._items),
            )
        self._publish(StoreChange(kind=ChangeKind.RECONCILED, resource=self.resource, result=result))
        return result

    def replace(self, items: Iterable[E]) -> None:
        """Replace the whole collection (duplicate keys: last one wins)."""
        previous = self._items
        self._items = list(build_index(items).values())
        result: ReconcileResult[E] = ReconcileResult(added=list(self._items), removed=previous)
        self._publish(StoreChange(kind=ChangeKind.REPLACED, resource=self.resource, result=result))

    def clear(self) -> None:
        previous = self._items
        self._items = []
        self._publish(
            StoreChange(
                kind=ChangeKind.CLEARED,
                resource=self.resource,
                result=ReconcileResult(removed=previous),
            )
        )

    def _publish(self, change: StoreChange[E]) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.warning("%s store listener failed", self.resource, exc_info=True)
