"""Background polling and manual refresh of reconciled stores.

Two paths feed the stores:

- the automatic cycle, started by a fixed-interval timer, fetches missions,
  vehicles and alarms concurrently and reconciles them one kind at a time
  in that order. Only one automatic cycle is ever in flight; a tick that
  finds one running is skipped.
- :meth:`PollScheduler.refresh` fetches a single kind on demand and reports
  progress through :class:`RefreshReport` notifications. It is not gated by
  the automatic cycle, so the two may overlap; each reconcile still runs to
  completion on the event loop before the next one starts.

Fetch failures never stop the timer. Automatic failures are logged at DEBUG,
manual failures are reported through the refresh status.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from antfleet._constants import DEFAULT_POLL_INTERVAL
from antfleet.exceptions import AntError
from antfleet.state.events import ResourceKind, Unsubscribe
from antfleet.state.store import ReconciledStore

_logger = logging.getLogger(__name__)

AUTOMATIC_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.MISSIONS,
    ResourceKind.VEHICLES,
    ResourceKind.ALARMS,
)


class SnapshotSource(Protocol):
    """Anything that can fetch a full snapshot of one resource kind."""

    async def fetch(self, kind: ResourceKind) -> Sequence[Any]:
        ...


class SchedulerState(StrEnum):
    STOPPED = "stopped"
    RUNNING = "running"


class RefreshStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class RefreshReport:
    """Progress of one manual refresh."""

    kind: ResourceKind
    status: RefreshStatus
    message: str = ""
    error: Exception | None = None
    at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.SUCCESS


StatusListener = Callable[[RefreshReport], None]


class PollScheduler:
    """Keeps reconciled stores in sync with a :class:`SnapshotSource`.

    Parameters
    ----------
    source : SnapshotSource
        Usually an :class:`antfleet.client.AntClient`.
    stores : Mapping[ResourceKind, ReconciledStore]
        Target store per resource kind. Every kind in ``kinds`` needs one.
    interval : float
        Seconds between automatic cycles.
    kinds : Sequence[ResourceKind]
        Kinds refreshed by the automatic cycle, in apply order.
    """

    def __init__(
        self,
        source: SnapshotSource,
        stores: Mapping[ResourceKind, ReconciledStore[Any]],
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        kinds: Sequence[ResourceKind] = AUTOMATIC_KINDS,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        missing = [kind for kind in kinds if kind not in stores]
        if missing:
            raise ValueError(f"No store for resource kinds: {', '.join(missing)}")
        self._source = source
        self._stores = dict(stores)
        self._interval = interval
        self._kinds = tuple(kinds)
        self._timer: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[bool] | None = None
        self._in_flight = False
        self._status: RefreshReport | None = None
        self._status_listeners: list[StatusListener] = []

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.RUNNING if self._timer is not None else SchedulerState.STOPPED

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    @property
    def cycle_in_flight(self) -> bool:
        return self._in_flight

    @property
    def status(self) -> RefreshReport | None:
        """Latest manual refresh report, if any."""
        return self._status

    # ------------------------------------------------------------------
    # Timer lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the timer, replacing a running one. Needs a running loop."""
        if self._timer is not None:
            self.stop()
        self._timer = asyncio.get_running_loop().create_task(self._tick_loop(), name="antfleet-poll-timer")
        _logger.info("Polling started (every %.1fs)", self._interval)

    def stop(self) -> None:
        """Stop the timer.

        A cycle already in flight is not cancelled; its results are still
        applied when they arrive.
        """
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        _logger.info("Polling stopped")

    async def aclose(self) -> None:
        """Stop the timer and wait for the in-flight cycle, if any."""
        timer = self._timer
        self.stop()
        if timer is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        cycle = self._cycle_task
        if cycle is not None and not cycle.done():
            await asyncio.gather(cycle, return_exceptions=True)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if self._in_flight:
                _logger.debug("Previous poll cycle still running, skipping tick")
                continue
            self._cycle_task = asyncio.get_running_loop().create_task(self.run_cycle(), name="antfleet-poll-cycle")
            self._cycle_task.add_done_callback(self._on_cycle_done)

    @staticmethod
    def _on_cycle_done(task: asyncio.Task[bool]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Poll cycle failed unexpectedly", exc_info=exc)

    # ------------------------------------------------------------------
    # Refresh paths
    # ------------------------------------------------------------------

    async def run_cycle(self) -> bool:
        """Run one automatic cycle.

        Returns ``False`` without fetching when another automatic cycle is
        still in flight. Errors other than :class:`AntError` are re-raised
        after the successful kinds have been applied.
        """
        if self._in_flight:
            return False
        self._in_flight = True
        try:
            results = await asyncio.gather(
                *(self._source.fetch(kind) for kind in self._kinds),
                return_exceptions=True,
            )
            unexpected: BaseException | None = None
            for kind, result in zip(self._kinds, results):
                if isinstance(result, AntError):
                    _logger.debug("Automatic %s refresh failed: %s", kind, result)
                    continue
                if isinstance(result, BaseException):
                    unexpected = unexpected or result
                    continue
                self._stores[kind].reconcile(result)
            if unexpected is not None:
                raise unexpected
        finally:
            self._in_flight = False
        return True

    async def refresh(self, kind: ResourceKind | str) -> RefreshReport:
        """Fetch and apply one kind now, reporting progress.

        Fetch errors end up in the returned (and published) report instead
        of being raised. Any other exception is reported as a failure and
        then re-raised.
        """
        kind = ResourceKind(kind)
        store = self._stores.get(kind)
        if store is None:
            raise ValueError(f"No store for resource kind {kind!r}")

        self._publish_status(RefreshReport(kind, RefreshStatus.IN_PROGRESS, f"Refreshing {kind}..."))
        try:
            items = await self._source.fetch(kind)
            if kind is ResourceKind.NODES:
                store.replace(items)
            else:
                store.reconcile(items)
        except AntError as exc:
            _logger.warning("Manual %s refresh failed: %s", kind, exc)
            report = RefreshReport(kind, RefreshStatus.FAILURE, f"Failed to refresh {kind}: {exc}", error=exc)
            self._publish_status(report)
            return report
        except Exception as exc:
            self._publish_status(
                RefreshReport(kind, RefreshStatus.FAILURE, f"Failed to refresh {kind}: {exc}", error=exc)
            )
            raise

        report = RefreshReport(kind, RefreshStatus.SUCCESS, f"{len(store)} {kind} loaded")
        self._publish_status(report)
        return report

    async def refresh_all(self, kinds: Sequence[ResourceKind | str] | None = None) -> list[RefreshReport]:
        """Manually refresh several kinds one after the other."""
        return [await self.refresh(kind) for kind in (kinds if kinds is not None else self._kinds)]

    # ------------------------------------------------------------------
    # Status notifications
    # ------------------------------------------------------------------

    def subscribe_status(self, listener: StatusListener) -> Unsubscribe:
        self._status_listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._status_listeners:
                self._status_listeners.remove(listener)

        return _unsubscribe

    def _publish_status(self, report: RefreshReport) -> None:
        self._status = report
        for listener in tuple(self._status_listeners):
            try:
                listener(report)
            except Exception:
                _logger.warning("Refresh status listener failed", exc_info=True)
