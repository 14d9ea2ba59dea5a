from __future__ import annotations
from typing import Protocol

from portal_sync.domain.model import CookieSet, LocationConfig


class LoginEnginePort(Protocol):
    """Performs the interactive portal login (browser automation) for one location."""

    def login(self, config: LocationConfig, *, timeout: float) -> CookieSet:
        """Returns the cookies of the authenticated browser context.

        Raises LoginFailed on any step failure. ``timeout`` is the remaining
        budget in seconds for the whole login.
        """
        ...
