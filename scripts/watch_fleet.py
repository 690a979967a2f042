#!/usr/bin/env python3
"""Watch an ANT fleet server from the terminal.

Logs in, loads nodes and vehicles, then polls missions, vehicles and
alarms every second and prints a one-line summary whenever the filtered
views change.

Usage
-----
Set environment variables and run::

    export ANT_SERVER="10.0.0.5:8081"
    export ANT_USERNAME="admin"
    export ANT_PASSWORD="secret"
    python scripts/watch_fleet.py

Options::

    --duration SECONDS   Stop after this many seconds (default: run until Ctrl+C)
    --search TEXT        Only show missions matching TEXT
    --preset NAME        Mission filter preset (default, all, active, ...)
    --list               Print every visible mission on each change
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from antfleet import AntClient, AntConfig, AntError, FleetMonitor, MissionFilterPreset  # noqa: E402


def _summary(monitor: FleetMonitor) -> str:
    missions = monitor.mission_statistics()
    vehicles = monitor.vehicle_statistics()
    alarms = monitor.alarm_statistics()
    return (
        f"{datetime.now():%H:%M:%S}  "
        f"missions {missions.total} (pending {missions.pending}, running {missions.running}, "
        f"completed {missions.completed})  "
        f"vehicles {vehicles.total} (low battery {vehicles.low_battery})  "
        f"alarms {alarms.total} (raised {alarms.raised})"
    )


def _print_missions(monitor: FleetMonitor) -> None:
    for mission in monitor.mission_view:
        print(
            f"  {mission.mission_id:>8}  {mission.navigation_state.name:<10} "
            f"{mission.from_node} -> {mission.to_node}  {mission.assigned_vehicle or '-'}"
        )


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch an ANT fleet server.")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--search", default="", help="Only show missions matching TEXT")
    parser.add_argument(
        "--preset",
        choices=[preset.value for preset in MissionFilterPreset],
        default=MissionFilterPreset.DEFAULT.value,
        help="Mission filter preset",
    )
    parser.add_argument("--list", action="store_true", dest="list_missions", help="Print visible missions")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = AntConfig.from_env()

    async with AntClient(config) as client:
        monitor = FleetMonitor(client)
        monitor.mission_view.update_filter(search_text=args.search, preset=MissionFilterPreset(args.preset))

        last_line = ""

        def _on_change(_change: Any) -> None:
            nonlocal last_line
            line = _summary(monitor)
            # ignore the clock prefix when deciding whether anything changed
            if line[10:] == last_line[10:]:
                return
            last_line = line
            print(line)
            if args.list_missions:
                _print_missions(monitor)

        for view in (monitor.mission_view, monitor.vehicle_view, monitor.alarm_view):
            view.subscribe(_on_change)
        monitor.scheduler.subscribe_status(
            lambda report: None if report.ok else print(f"  [{report.status}] {report.message}", file=sys.stderr)
        )

        try:
            login = await monitor.connect()
        except AntError as exc:
            print(f"Connection failed: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc
        print(f"Connected to {config.server} as {login.display_name} (api {login.api_version or '-'})")

        try:
            if args.duration is not None:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            await monitor.disconnect()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
