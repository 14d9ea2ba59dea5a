from __future__ import annotations

from datetime import datetime
from typing import Protocol

from portal_sync.domain.model import CookieSet, CredentialOrigin, CredentialRecord


class CredentialStorePort(Protocol):
    """In-process cache of portal cookies keyed by location."""

    def get(self, location_id: str) -> CredentialRecord | None:
        """Pure lookup. Never blocks, never does I/O."""
        ...

    def set(
        self,
        location_id: str,
        cookies: CookieSet,
        timestamp: datetime,
        origin: CredentialOrigin = CredentialOrigin.MEMORY,
    ) -> CredentialRecord:
        """Replace the record wholesale (last writer wins)."""
        ...

    def seed(self, location_id: str, cookies: CookieSet, timestamp: datetime) -> CredentialRecord:
        """Install a persisted record unless a fresher one is already cached; returns the winner."""
        ...

    def claim_load(self, location_id: str) -> bool:
        """True for the first caller per location, False afterwards."""
        ...

    def finish_load(self, location_id: str) -> None:
        """Called by the claimer once its load attempt is over, whatever the outcome."""
        ...

    def wait_loaded(self, location_id: str, timeout: float | None = None) -> bool:
        """Block until the claimed load finishes. False if ``timeout`` elapsed first."""
        ...
