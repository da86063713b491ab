"""Session state management for authenticated API calls."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

#: Default session time-to-live in seconds (12 hours).
#: The server does not report an expiry; a rejected session id is also
#: handled by re-authenticating on demand.
DEFAULT_SESSION_TTL: float = 12 * 3600


class GeotabSession(BaseModel):
    """Credentials returned by ``Authenticate``.

    Parameters
    ----------
    user_name : str
        The authenticated user.
    database : str
        Database the session is bound to.
    session_id : str
        Opaque session token sent with every call.
    server : str
        Host that subsequent calls must be sent to.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        was created.  Defaults to *now* if not provided.
    ttl : float
        Time-to-live in seconds.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_name: str
    database: str
    session_id: str
    server: str
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_SESSION_TTL

    def credentials(self) -> dict[str, Any]:
        """The ``credentials`` parameter for authenticated calls."""
        return {
            "userName": self.user_name,
            "database": self.database,
            "sessionId": self.session_id,
        }

    @property
    def is_expired(self) -> bool:
        """Whether the session has exceeded its TTL."""
        return (time.monotonic() - self.created_at) >= self.ttl

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at
