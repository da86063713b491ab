"""JSON-RPC transport over HTTP."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from fuelwatch._constants import API_PATH, USER_AGENT
from fuelwatch._redact import redact_for_log
from fuelwatch.exceptions import TelemetryTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`JsonRpcTransport`) concrete.
    """

    async def call(self, server: str, method: str, params: Mapping[str, Any]) -> dict[str, Any]:
        ...


class JsonRpcTransport:
    """POSTs ``{"method", "params"}`` envelopes to ``https://<server>/apiv1``.

    Returns the decoded response object, which holds either ``result`` or
    ``error``; interpreting it is left to the endpoint helpers.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @staticmethod
    def url_for(server: str) -> str:
        host = server.strip().rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return f"{host}{API_PATH}"

    async def call(self, server: str, method: str, params: Mapping[str, Any]) -> dict[str, Any]:
        url = self.url_for(server)
        payload = {"method": method, "params": dict(params)}
        headers = {
            "accept-encoding": "identity",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s %s params=%s", url, method, redact_for_log(payload["params"]))

        try:
            async with self._http.post(
                url,
                data=json.dumps(payload),
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise TelemetryTransportError(
                        f"HTTP {resp.status} from {method}: {text[:200]}",
                        status_code=resp.status,
                        method=method,
                    )
        except TelemetryTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise TelemetryTransportError(
                f"Request to {method} failed: {exc}",
                method=method,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TelemetryTransportError(
                f"Invalid JSON from {method}: {text[:200]}",
                method=method,
            ) from exc

        if not isinstance(body, dict):
            raise TelemetryTransportError(
                f"Unexpected response shape from {method}: {type(body).__name__}",
                method=method,
            )

        _logger.debug("%s response=%s", method, redact_for_log(body))
        return body
