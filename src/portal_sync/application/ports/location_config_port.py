from __future__ import annotations

from typing import Protocol

from portal_sync.domain.model import LocationConfig


class LocationConfigPort(Protocol):
    """Supplies the per-location SSO credentials used for portal login."""

    def get(self, location_id: str) -> LocationConfig:
        """Raises ConfigMissing if the location is unknown or a credential is empty."""
        ...
