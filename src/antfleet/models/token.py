"""Login result model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LoginResult(BaseModel):
    """Outcome of a successful login."""

    model_config = ConfigDict(frozen=True)

    token: str
    api_version: str = ""
    display_name: str = ""
