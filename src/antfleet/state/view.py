"""Filtered, sorted projections over a reconciled store.

A :class:`FilteredView` never owns entities; it holds references to the
store's objects in filter/sort order and rebuilds that list whenever the
store announces a change or the view's criteria change.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from collections.abc import Callable, Hashable, Iterable, Iterator, Sequence
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from antfleet.state.events import ChangeKind, Listener, StoreChange, Unsubscribe
from antfleet.state.filters import EntityFilter, SortKey
from antfleet.state.reconcile import Reconcilable
from antfleet.state.store import ReconciledStore

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Reconcilable)
F = TypeVar("F", bound=EntityFilter)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def sort_entities(entities: Iterable[E], keys: Sequence[SortKey]) -> list[E]:
    """Stable multi-key sort; the first key is primary.

    ``None`` values sort last in either direction.
    """
    ordered = list(entities)
    for key in reversed(keys):
        name = key.field
        if key.descending:
            ordered.sort(key=lambda e: (getattr(e, name) is not None, getattr(e, name)), reverse=True)
        else:
            ordered.sort(key=lambda e: (getattr(e, name) is None, getattr(e, name)))
    return ordered


class FilteredView(Generic[E, F]):
    """Read-only, live projection of a :class:`ReconciledStore`."""

    def __init__(
        self,
        store: ReconciledStore[E],
        *,
        filter: F | None = None,
        sort: Sequence[SortKey] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._filter = filter
        self._sort: tuple[SortKey, ...] = tuple(sort)
        self._clock = clock
        self._items: list[E] = []
        self._listeners: list[Listener[E]] = []
        self._unsubscribe: Unsubscribe | None = store.subscribe(self._on_store_change)
        self.recompute()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> E:
        return self._items[index]

    @property
    def items(self) -> tuple[E, ...]:
        return tuple(self._items)

    @property
    def store(self) -> ReconciledStore[E]:
        return self._store

    @property
    def filter(self) -> F | None:
        return self._filter

    @property
    def sort(self) -> tuple[SortKey, ...]:
        return self._sort

    def set_filter(self, new_filter: F | None) -> None:
        self._filter = new_filter
        self.recompute()

    def update_filter(self, **changes: Any) -> None:
        """Replace individual filter attributes, e.g. ``search_text="V1"``."""
        if self._filter is None:
            raise ValueError("view has no filter to update")
        self.set_filter(dataclasses.replace(self._filter, **changes))

    def set_sort(self, keys: Sequence[SortKey]) -> None:
        self._sort = tuple(keys)
        self.recompute()

    def subscribe(self, listener: Listener[E]) -> Unsubscribe:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        """Detach from the store; the view keeps its last contents."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def recompute(self) -> None:
        now = self._clock()
        current_filter = self._filter
        matched = [
            entity
            for entity in self._store.items
            if current_filter is None or current_filter.matches(entity, now)
        ]
        self._items = sort_entities(matched, self._sort)
        change: StoreChange[E] = StoreChange(kind=ChangeKind.RECOMPUTED, resource=self._store.resource)
        for listener in tuple(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.warning("%s view listener failed", self._store.resource, exc_info=True)

    def count_by(self, bucket: Callable[[E], Hashable]) -> Counter[Hashable]:
        """Count the filtered entities per bucket."""
        return Counter(bucket(entity) for entity in self._items)

    def _on_store_change(self, change: StoreChange[E]) -> None:
        self.recompute()
