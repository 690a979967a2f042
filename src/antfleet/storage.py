"""CSV persistence for mission routes.

Routes live in ``<data_dir>/mission_routes.csv`` with the columns
``Id,Name,Nodes,MissionType,CreatedAt,IsActive``. ``Nodes`` holds the node
names joined by commas inside one quoted cell.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path

from antfleet.exceptions import AntStorageError
from antfleet.models.route import MissionRoute

_logger = logging.getLogger(__name__)

ROUTES_FILE_NAME = "mission_routes.csv"
CSV_COLUMNS: tuple[str, ...] = ("Id", "Name", "Nodes", "MissionType", "CreatedAt", "IsActive")
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


def _parse_created_at(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            _logger.debug("Unparseable route timestamp %r, using now", value)
    return datetime.now()


def _parse_nodes(value: str | None) -> list[str]:
    if not value:
        return []
    return [node.strip() for node in value.split(",") if node.strip()]


def _route_from_row(row: Mapping[str, str | None], *, fresh: bool) -> MissionRoute:
    is_active = (row.get("IsActive") or "").strip().lower() == "true"
    data: dict[str, object] = {
        "name": row.get("Name") or "",
        "nodes": _parse_nodes(row.get("Nodes")),
        "mission_type": row.get("MissionType") or "",
        "is_active": is_active,
    }
    if not fresh:
        data["created_at"] = _parse_created_at(row.get("CreatedAt"))
        if row.get("Id"):
            data["id"] = row["Id"]
    return MissionRoute.model_validate(data)


def _route_to_row(route: MissionRoute) -> dict[str, str]:
    return {
        "Id": route.id,
        "Name": route.name,
        "Nodes": ",".join(route.nodes),
        "MissionType": route.mission_type,
        "CreatedAt": route.created_at.strftime(CREATED_AT_FORMAT),
        "IsActive": str(route.is_active),
    }


def routes_to_csv(routes: Iterable[MissionRoute]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for route in routes:
        writer.writerow(_route_to_row(route))
    return buffer.getvalue()


def routes_from_csv(text: str, *, fresh: bool = False) -> list[MissionRoute]:
    """Parse routes from CSV text.

    With ``fresh`` every route gets a new id and ``created_at`` (import).
    """
    reader = csv.DictReader(io.StringIO(text))
    return [_route_from_row(row, fresh=fresh) for row in reader]


class RouteStorage:
    """Reads and writes mission routes below *data_dir*."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)

    @property
    def path(self) -> Path:
        return self._data_dir / ROUTES_FILE_NAME

    def load(self) -> list[MissionRoute]:
        """Load the stored routes; a missing file means no routes."""
        path = self.path
        if not path.exists():
            return []
        try:
            routes = routes_from_csv(path.read_text(encoding="utf-8-sig"))
        except (OSError, csv.Error, ValueError) as exc:
            raise AntStorageError(f"Failed to load routes from {path}: {exc}", path=str(path)) from exc
        _logger.debug("Loaded %d routes from %s", len(routes), path)
        return routes

    def save(self, routes: Iterable[MissionRoute]) -> None:
        path = self.path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(routes_to_csv(routes), encoding="utf-8")
        except OSError as exc:
            raise AntStorageError(f"Failed to save routes to {path}: {exc}", path=str(path)) from exc

    def import_csv(self, source: Path) -> list[MissionRoute]:
        """Read routes from an exported file, assigning new ids and timestamps."""
        source = Path(source)
        if not source.exists():
            raise AntStorageError(f"Route file not found: {source}", path=str(source))
        try:
            return routes_from_csv(source.read_text(encoding="utf-8-sig"), fresh=True)
        except (OSError, csv.Error, ValueError) as exc:
            raise AntStorageError(f"Failed to import routes from {source}: {exc}", path=str(source)) from exc

    def export_csv(self, routes: Iterable[MissionRoute], target: Path) -> None:
        target = Path(target)
        try:
            target.write_text(routes_to_csv(routes), encoding="utf-8")
        except OSError as exc:
            raise AntStorageError(f"Failed to export routes to {target}: {exc}", path=str(target)) from exc
