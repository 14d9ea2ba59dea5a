from __future__ import annotations

from datetime import datetime
from typing import Protocol

from portal_sync.domain.model import CookieSet, PersistedCookies


class PersistenceGatewayPort(Protocol):
    """Durable copy of each location's cookies, used to survive restarts."""

    def load(self, location_id: str) -> PersistedCookies | None:
        """
        Returns:
            the stored cookies and the time they were produced, or None when
            there is no record, the payload is empty or the record is stale.

        Raises PersistenceError when the backing store cannot be read.
        """
        ...

    def save(self, location_id: str, cookies: CookieSet, timestamp: datetime) -> None:
        """Overwrite the record for the location. Raises PersistenceError."""
        ...
