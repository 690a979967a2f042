"""Session state for authenticated API calls."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    """Immutable session state after a successful login.

    Parameters
    ----------
    base_url : str
        REST root of the server the session belongs to.
    token : str
        Bearer token sent with every request.
    api_version : str
        Path segment (e.g. ``"v2"``) prefixed to every resource endpoint.
    display_name : str
        Operator name reported by the server (falls back to the username).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    base_url: str
    token: str
    api_version: str = ""
    display_name: str = ""

    def resource_url(self, resource: str) -> str:
        """Absolute URL of a versioned resource such as ``vehicles``."""
        version = self.api_version.strip("/")
        prefix = f"{self.base_url}/{version}" if version else self.base_url
        return f"{prefix}/{resource.lstrip('/')}"
