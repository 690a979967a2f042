"""Login endpoint.

Endpoint:
  - POST {base_url}/login
"""

from __future__ import annotations

import logging
from typing import Any

from antfleet._constants import LOGIN_API_VERSION
from antfleet._redact import redact_for_log
from antfleet._transport import Transport
from antfleet.exceptions import AntAuthenticationError, AntParseError
from antfleet.models.token import LoginResult

_logger = logging.getLogger(__name__)


def build_login_request(username: str, password: str) -> dict[str, Any]:
    return {
        "username": username,
        "password": password,
        "isLdap": False,
        "apiVersion": dict(LOGIN_API_VERSION),
    }


def parse_login_response(body: Any, username: str) -> LoginResult:
    """Parse the login body into a :class:`LoginResult`.

    Raises :class:`AntAuthenticationError` when the server accepted the
    request but issued no token.
    """
    if not isinstance(body, dict):
        raise AntParseError("login returned a non-object body", endpoint="login")
    _logger.debug("Login response: %s", redact_for_log(body))
    token = body.get("token")
    if not token:
        raise AntAuthenticationError("Login response did not contain a token", endpoint="login")
    return LoginResult(
        token=str(token),
        api_version=str(body.get("apiVersion") or ""),
        display_name=str(body.get("displayName") or username),
    )


async def login(
    transport: Transport,
    base_url: str,
    username: str,
    password: str,
) -> LoginResult:
    body = await transport.request_json(
        "POST",
        f"{base_url}/login",
        json_body=build_login_request(username, password),
    )
    return parse_login_response(body, username)
