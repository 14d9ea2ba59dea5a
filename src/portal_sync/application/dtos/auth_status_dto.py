from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuthStatusDTO:
    location_id: str
    authenticated: bool
    cookies_valid: bool
    last_auth_at: datetime | None = None
    state: str = "unprobed"
    cookie_count: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "location_id": self.location_id,
            "authenticated": self.authenticated,
            "cookies_valid": self.cookies_valid,
            "last_auth_at": self.last_auth_at.isoformat() if self.last_auth_at else None,
            "state": self.state,
            "cookie_count": self.cookie_count,
        }
