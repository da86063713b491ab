"""Login endpoint.

Method:
  - Authenticate
"""

from __future__ import annotations

import logging
from typing import Any

from fuelwatch._api._common import unwrap_result
from fuelwatch._redact import redact_for_log
from fuelwatch._transport import Transport
from fuelwatch.config import GeotabConfig
from fuelwatch.exceptions import AuthenticationError, SessionExpiredError, TelemetryApiError
from fuelwatch.session import GeotabSession

_logger = logging.getLogger(__name__)

_METHOD = "Authenticate"

# ``path`` value meaning "keep using the server you authenticated against".
_SAME_SERVER = "ThisServer"


def build_login_params(config: GeotabConfig) -> dict[str, Any]:
    return {
        "userName": config.username,
        "password": config.password,
        "database": config.database,
    }


def parse_login_response(
    response: dict[str, Any],
    config: GeotabConfig,
) -> GeotabSession:
    """Parse an ``Authenticate`` response into a session.

    Raises
    ------
    AuthenticationError
        If login failed or the response is missing credential fields.
    """
    try:
        result = unwrap_result(_METHOD, response)
    except SessionExpiredError as exc:
        raise AuthenticationError(str(exc), name=exc.name, method=_METHOD) from exc
    except AuthenticationError:
        raise
    except TelemetryApiError as exc:
        raise AuthenticationError(str(exc), name=exc.name, method=_METHOD) from exc

    _logger.debug("Authenticate result parsed=%s", redact_for_log(result))
    credentials = result.get("credentials") if isinstance(result, dict) else None
    if not isinstance(credentials, dict) or not credentials.get("sessionId"):
        raise AuthenticationError("Authenticate response missing credentials", method=_METHOD)

    path = result.get("path")
    server = config.server if not path or path == _SAME_SERVER else str(path)

    return GeotabSession(
        user_name=str(credentials.get("userName") or config.username),
        database=str(credentials.get("database") or config.database),
        session_id=str(credentials["sessionId"]),
        server=server,
    )


async def authenticate(config: GeotabConfig, transport: Transport) -> GeotabSession:
    """Authenticate against ``config.server`` and return a session."""
    response = await transport.call(config.server, _METHOD, build_login_params(config))
    session = parse_login_response(response, config)
    if session.server != config.server:
        _logger.info("Session redirected to server %s", session.server)
    return session
