from __future__ import annotations

from collections.abc import Sequence


class PortalAuthError(Exception):
    """Base class for portal session errors."""


class ConfigMissing(PortalAuthError):
    """The location has no usable SSO credentials. Needs operator action."""

    def __init__(self, location_id: str, detail: str = "SSO credentials not configured") -> None:
        super().__init__(f"{detail} for location {location_id}")
        self.location_id = location_id


class LoginFailed(PortalAuthError):
    """Interactive login did not produce a usable cookie set.

    ``reason`` and ``artifacts`` (screenshot paths, page snippets) are for a
    human reading the logs; nothing branches on them.
    """

    def __init__(self, reason: str, artifacts: Sequence[str] = ()) -> None:
        super().__init__(reason)
        self.reason = reason
        self.artifacts = tuple(artifacts)


class LoginTimeout(LoginFailed):
    pass


class ProbeFailed(PortalAuthError):
    """Validity probe could not confirm the session. Never surfaced to callers."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.status_code = status_code


class PersistenceError(PortalAuthError):
    """Durable cookie storage failed. Logged, never propagated."""


class SessionExpired(PortalAuthError):
    """Portal answered an authenticated request with its login page."""
