from __future__ import annotations

from portal_sync.application.use_cases.refresh_coordinator import RefreshCoordinator
from portal_sync.domain.model import CookieSet


def render_cookie_header(cookies: CookieSet) -> str:
    """``name=value`` pairs joined by ``; `` in the cookie set's own order."""
    return "; ".join(f"{c.name}={c.value}" for c in cookies)


class CookieHeaderBuilder:
    """Cookie header for direct HTTP calls to the portal."""

    def __init__(self, coordinator: RefreshCoordinator) -> None:
        self.coordinator = coordinator

    def build_header(self, location_id: str, *, timeout: float | None = None) -> str:
        cookies = self.coordinator.get_valid_cookies(location_id, timeout=timeout)
        return render_cookie_header(cookies)
