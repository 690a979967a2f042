"""Client configuration for antfleet."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from antfleet.exceptions import AntConfigError


def _default_data_dir() -> Path:
    return Path.home() / "Documents" / "AntMissionManager"


@dataclasses.dataclass(frozen=True)
class AntConfig:
    """Client configuration.

    Parameters
    ----------
    server : str
        Host (optionally ``host:port``) of the ANT server, without scheme.
    username : str
        ANT account name.
    password : str
        ANT account password.
    scheme : str
        URL scheme used to reach the server.
    base_path : str
        REST root below the server address.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    poll_interval : float
        Seconds between automatic refresh cycles.
    recent_window : float
        Seconds a completed mission stays visible under the default
        mission filter (and in the server-side recent selection).
    alarm_limit : int
        Maximum number of alarms requested per fetch.
    data_dir : Path
        Directory holding locally persisted mission routes.
    """

    server: str = ""
    username: str = "admin"
    password: str = ""
    scheme: str = "http"
    base_path: str = "/wms/rest"
    request_timeout: float = 30.0
    poll_interval: float = 1.0
    recent_window: float = 3 * 60
    alarm_limit: int = 50
    data_dir: Path = dataclasses.field(default_factory=_default_data_dir)

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise AntConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.request_timeout <= 0:
            raise AntConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.alarm_limit <= 0:
            raise AntConfigError(f"alarm_limit must be positive, got {self.alarm_limit}")

    @property
    def base_url(self) -> str:
        """REST root URL, e.g. ``http://10.0.0.5:8081/wms/rest``."""
        if not self.server:
            raise AntConfigError("No ANT server configured")
        return f"{self.scheme}://{self.server.strip().rstrip('/')}{self.base_path}"

    @classmethod
    def from_env(cls, **overrides: Any) -> AntConfig:
        """Create configuration from environment variables.

        Reads ``ANT_SERVER``, ``ANT_USERNAME``, ``ANT_PASSWORD`` and the
        optional ``ANT_*`` tuning variables. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "ANT_SERVER": "server",
            "ANT_USERNAME": "username",
            "ANT_PASSWORD": "password",
            "ANT_SCHEME": "scheme",
            "ANT_BASE_PATH": "base_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # numeric values, handled separately
        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "ANT_REQUEST_TIMEOUT": ("request_timeout", float),
            "ANT_POLL_INTERVAL": ("poll_interval", float),
            "ANT_RECENT_WINDOW": ("recent_window", float),
            "ANT_ALARM_LIMIT": ("alarm_limit", int),
        }
        for env_key, (field_name, caster) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val)
            except ValueError as exc:
                raise AntConfigError(f"{env_key} is not a valid {caster.__name__}: {val!r}") from exc

        data_dir = env.get("ANT_DATA_DIR")
        if data_dir is not None and "data_dir" not in overrides:
            config_kwargs["data_dir"] = Path(data_dir).expanduser()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
