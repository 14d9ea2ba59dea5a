from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from portal_sync.domain.model import CookieSet


@dataclass(frozen=True)
class ProbeResult:
    valid: bool
    status_code: int | None = None
    reason: str = ""


class ValidityProbePort(Protocol):
    def check(self, location_id: str, cookies: CookieSet) -> ProbeResult:
        """Classify the cookies as usable or not. Must not raise."""
        ...
