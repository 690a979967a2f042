from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from antfleet.exceptions import AntNetworkError, AntServerError
from antfleet.models.alarm import Alarm
from antfleet.models.mission import Mission
from antfleet.models.node import Node
from antfleet.models.vehicle import Vehicle
from antfleet.poller import PollScheduler, RefreshReport, RefreshStatus, SchedulerState
from antfleet.state.events import ChangeKind, ResourceKind, StoreChange
from antfleet.state.store import ReconciledStore


class _FakeSource:
    def __init__(
        self,
        *,
        errors: dict[ResourceKind, BaseException] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.calls: list[ResourceKind] = []
        self._errors = errors or {}
        self._gate = gate
        self.snapshots: dict[ResourceKind, list[Any]] = {
            ResourceKind.MISSIONS: [Mission(mission_id="1"), Mission(mission_id="2")],
            ResourceKind.VEHICLES: [Vehicle(name="V1", battery_level=80)],
            ResourceKind.ALARMS: [Alarm(uuid="a-1")],
            ResourceKind.NODES: [Node(id="N1"), Node(id="N2")],
        }

    async def fetch(self, kind: ResourceKind) -> Sequence[Any]:
        self.calls.append(kind)
        if self._gate is not None:
            await self._gate.wait()
        error = self._errors.get(kind)
        if error is not None:
            raise error
        return list(self.snapshots[kind])


def _stores() -> dict[ResourceKind, ReconciledStore[Any]]:
    return {kind: ReconciledStore(kind) for kind in ResourceKind}


async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_cycle_applies_kinds_in_fixed_order() -> None:
    stores = _stores()
    applied: list[ResourceKind] = []
    for store in stores.values():
        store.subscribe(lambda change: applied.append(change.resource))
    scheduler = PollScheduler(_FakeSource(), stores)

    assert await scheduler.run_cycle() is True

    assert applied == [ResourceKind.MISSIONS, ResourceKind.VEHICLES, ResourceKind.ALARMS]
    assert stores[ResourceKind.MISSIONS].keys() == ["1", "2"]
    assert len(stores[ResourceKind.NODES]) == 0
    assert scheduler.status is None


@pytest.mark.asyncio
async def test_second_cycle_while_in_flight_fetches_nothing() -> None:
    gate = asyncio.Event()
    source = _FakeSource(gate=gate)
    scheduler = PollScheduler(source, _stores())

    first = asyncio.create_task(scheduler.run_cycle())
    await _wait_for(lambda: len(source.calls) == 3)
    assert scheduler.cycle_in_flight

    assert await scheduler.run_cycle() is False
    assert len(source.calls) == 3

    gate.set()
    assert await first is True
    assert not scheduler.cycle_in_flight
    assert len(source.calls) == 3


@pytest.mark.asyncio
async def test_failing_kind_is_skipped_and_logged(caplog: pytest.LogCaptureFixture) -> None:
    stores = _stores()
    source = _FakeSource(errors={ResourceKind.VEHICLES: AntNetworkError("connection refused")})
    scheduler = PollScheduler(source, stores)

    with caplog.at_level(logging.DEBUG, logger="antfleet.poller"):
        assert await scheduler.run_cycle() is True

    assert len(stores[ResourceKind.MISSIONS]) == 2
    assert len(stores[ResourceKind.ALARMS]) == 1
    assert len(stores[ResourceKind.VEHICLES]) == 0
    assert "Automatic vehicles refresh failed" in caplog.text
    assert scheduler.status is None


@pytest.mark.asyncio
async def test_unexpected_error_is_raised_after_applying_others() -> None:
    stores = _stores()
    source = _FakeSource(errors={ResourceKind.ALARMS: RuntimeError("bug")})
    scheduler = PollScheduler(source, stores)

    with pytest.raises(RuntimeError, match="bug"):
        await scheduler.run_cycle()

    assert len(stores[ResourceKind.MISSIONS]) == 2
    assert len(stores[ResourceKind.VEHICLES]) == 1
    assert not scheduler.cycle_in_flight


@pytest.mark.asyncio
async def test_manual_refresh_runs_while_automatic_cycle_is_in_flight() -> None:
    gate = asyncio.Event()
    source = _FakeSource(gate=gate)
    stores = _stores()
    scheduler = PollScheduler(source, stores)
    reports: list[RefreshReport] = []
    scheduler.subscribe_status(reports.append)

    automatic = asyncio.create_task(scheduler.run_cycle())
    await _wait_for(lambda: len(source.calls) == 3)
    manual = asyncio.create_task(scheduler.refresh(ResourceKind.VEHICLES))
    await _wait_for(lambda: len(source.calls) == 4)

    assert source.calls.count(ResourceKind.VEHICLES) == 2
    assert scheduler.status is not None
    assert scheduler.status.status is RefreshStatus.IN_PROGRESS

    gate.set()
    report = await manual
    assert await automatic is True

    assert report.status is RefreshStatus.SUCCESS
    assert report.ok
    assert [r.status for r in reports] == [RefreshStatus.IN_PROGRESS, RefreshStatus.SUCCESS]
    assert stores[ResourceKind.VEHICLES].keys() == ["V1"]


@pytest.mark.asyncio
async def test_manual_refresh_failure_is_reported_not_raised() -> None:
    error = AntServerError("HTTP 500 from missions", status_code=500, endpoint="missions")
    scheduler = PollScheduler(_FakeSource(errors={ResourceKind.MISSIONS: error}), _stores())
    reports: list[RefreshReport] = []
    scheduler.subscribe_status(reports.append)

    report = await scheduler.refresh(ResourceKind.MISSIONS)

    assert report.status is RefreshStatus.FAILURE
    assert report.error is error
    assert "HTTP 500" in report.message
    assert [r.status for r in reports] == [RefreshStatus.IN_PROGRESS, RefreshStatus.FAILURE]
    assert scheduler.status is report


@pytest.mark.asyncio
async def test_manual_node_refresh_replaces_collection() -> None:
    stores = _stores()
    changes: list[StoreChange[Node]] = []
    stores[ResourceKind.NODES].subscribe(changes.append)
    scheduler = PollScheduler(_FakeSource(), stores)

    report = await scheduler.refresh(ResourceKind.NODES)

    assert report.ok
    assert report.message == "2 nodes loaded"
    assert [c.kind for c in changes] == [ChangeKind.REPLACED]


@pytest.mark.asyncio
async def test_refresh_all_runs_kinds_in_order() -> None:
    source = _FakeSource()
    scheduler = PollScheduler(source, _stores())

    reports = await scheduler.refresh_all([ResourceKind.NODES, ResourceKind.VEHICLES])

    assert [r.kind for r in reports] == [ResourceKind.NODES, ResourceKind.VEHICLES]
    assert source.calls == [ResourceKind.NODES, ResourceKind.VEHICLES]


@pytest.mark.asyncio
async def test_timer_polls_until_stopped() -> None:
    source = _FakeSource()
    scheduler = PollScheduler(source, _stores(), interval=0.01)

    scheduler.start()
    assert scheduler.state is SchedulerState.RUNNING
    await _wait_for(lambda: len(source.calls) >= 6)
    await scheduler.aclose()

    assert scheduler.state is SchedulerState.STOPPED
    calls = len(source.calls)
    await asyncio.sleep(0.05)
    assert len(source.calls) == calls


@pytest.mark.asyncio
async def test_restart_replaces_previous_timer() -> None:
    scheduler = PollScheduler(_FakeSource(), _stores(), interval=0.01)

    scheduler.start()
    first = scheduler._timer
    scheduler.start()
    second = scheduler._timer
    await asyncio.sleep(0.001)

    assert first is not None and first.done()
    assert second is not None and not second.done()
    await scheduler.aclose()


@pytest.mark.asyncio
async def test_timer_survives_fetch_failures() -> None:
    source = _FakeSource(errors={kind: AntNetworkError("down") for kind in ResourceKind})
    scheduler = PollScheduler(source, _stores(), interval=0.01)

    scheduler.start()
    await _wait_for(lambda: len(source.calls) >= 9)

    assert scheduler.is_running
    await scheduler.aclose()


@pytest.mark.asyncio
async def test_results_arriving_after_stop_are_applied() -> None:
    gate = asyncio.Event()
    source = _FakeSource(gate=gate)
    stores = _stores()
    scheduler = PollScheduler(source, stores, interval=0.01)

    scheduler.start()
    await _wait_for(lambda: len(source.calls) == 3)
    scheduler.stop()
    gate.set()
    await scheduler.aclose()

    assert len(source.calls) == 3
    assert len(stores[ResourceKind.VEHICLES]) == 1


def test_constructor_validates_arguments() -> None:
    with pytest.raises(ValueError):
        PollScheduler(_FakeSource(), _stores(), interval=0)
    with pytest.raises(ValueError):
        PollScheduler(_FakeSource(), {ResourceKind.MISSIONS: ReconciledStore(ResourceKind.MISSIONS)})


@pytest.mark.asyncio
async def test_manual_refresh_reports_failure_before_reraising_unexpected_errors() -> None:
    error = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
    scheduler = PollScheduler(_FakeSource(errors={ResourceKind.VEHICLES: error}), _stores())
    reports: list[RefreshReport] = []
    scheduler.subscribe_status(reports.append)

    with pytest.raises(UnicodeDecodeError):
        await scheduler.refresh(ResourceKind.VEHICLES)

    assert [r.status for r in reports] == [RefreshStatus.IN_PROGRESS, RefreshStatus.FAILURE]
    assert scheduler.status is not None
    assert scheduler.status.status is RefreshStatus.FAILURE
    assert scheduler.status.error is error


@pytest.mark.asyncio
async def test_refresh_accepts_kind_names() -> None:
    stores = _stores()
    changes: list[StoreChange[Node]] = []
    stores[ResourceKind.NODES].subscribe(changes.append)
    scheduler = PollScheduler(_FakeSource(), stores)

    report = await scheduler.refresh("nodes")

    assert report.kind is ResourceKind.NODES
    assert [c.kind for c in changes] == [ChangeKind.REPLACED]


@pytest.mark.asyncio
async def test_ticks_during_a_slow_cycle_are_skipped() -> None:
    gate = asyncio.Event()
    source = _FakeSource(gate=gate)
    scheduler = PollScheduler(source, _stores(), interval=0.01)

    scheduler.start()
    await _wait_for(lambda: len(source.calls) == 3)
    await asyncio.sleep(0.1)

    assert scheduler.cycle_in_flight
    assert len(source.calls) == 3

    scheduler.stop()
    gate.set()
    await scheduler.aclose()
    assert len(source.calls) == 3
