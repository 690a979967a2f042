"""Base model and enum for ANT API responses.

Every ANT entity model inherits from :class:`AntBaseModel` which
provides:

* an alias generator mapping ``snake_case`` fields to the flat
  lower-case keys the ANT server uses (``mission_id`` -> ``missionid``).
* A ``model_validator(mode="before")`` that drops ``None`` and empty
  string values so the field default is used.
* A ``raw`` dict that captures the original payload.
* :meth:`AntBaseModel.update_from`, the in-place field copy used by the
  reconciler to keep object identity stable across refreshes.

Unlike frozen response models, entity models are mutable: a refresh
mutates the instance already held by a store instead of replacing it.

State enums inherit from :class:`AntEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN``
for any value without a mapped member.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000
# Smallest epoch value accepted as a timestamp (2001-09-09).
_EPOCH_MIN = 1_000_000_000


def _flat_alias(name: str) -> str:
    return name.replace("_", "")


def parse_ant_timestamp(value: Any) -> datetime | None:
    """Convert an ANT timestamp to a timezone-aware datetime.

    Accepts datetimes, ISO-8601 strings and epoch values in seconds or
    milliseconds. Values without a zone are taken as UTC. Anything that
    cannot be interpreted yields ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    text = str(value).strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return _from_epoch(int(text))
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _from_epoch(value: int | float) -> datetime | None:
    ts = float(value)
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    if ts < _EPOCH_MIN:
        return None
    try:
        return datetime.fromtimestamp(ts, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


AntTimestamp = Annotated[datetime | None, BeforeValidator(parse_ant_timestamp)]
"""Annotated type that coerces ANT timestamps to aware datetimes (or ``None``)."""


class AntEnum(enum.IntEnum):
    """Base for ANT state enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    Codes the server sends that have no mapped member resolve to
    ``UNKNOWN`` instead of raising ``ValueError``.
    """

    @classmethod
    def _missing_(cls, value: object) -> AntEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: AntEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class AntBaseModel(BaseModel):
    """Base for ANT entity models."""

    IDENTITY_FIELD: ClassVar[str] = ""
    """Name of the field holding the stable identity key."""

    SEARCH_FIELDS: ClassVar[tuple[str, ...]] = ()
    """Fields scanned by free-text search when no column is selected."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=_flat_alias,
        coerce_numbers_to_str=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API payload."""

    @model_validator(mode="before")
    @classmethod
    def _clean_ant_values(cls, values: Any) -> Any:
        """Drop null/empty values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned

    @property
    def identity(self) -> str:
        return str(getattr(self, self.IDENTITY_FIELD))

    def _assign(self, name: str, value: Any) -> bool:
        if getattr(self, name) == value:
            return False
        setattr(self, name, value)
        return True

    def update_from(self, other: AntBaseModel) -> bool:
        """Copy every mutable field of *other* onto this instance.

        The identity field is left alone and ``raw`` is replaced without
        counting as a change. Returns ``True`` when any field value
        actually changed.
        """
        if type(other) is not type(self):
            raise TypeError(f"cannot update {type(self).__name__} from {type(other).__name__}")
        changed = False
        for name in type(self).model_fields:
            if name in (self.IDENTITY_FIELD, "raw"):
                continue
            changed = self._assign(name, getattr(other, name)) or changed
        self.raw = other.raw
        return changed
