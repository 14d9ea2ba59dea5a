from __future__ import annotations

from typing import Any, Protocol


class NotificationPort(Protocol):
    """Receives session lifecycle events.

    Events: probe_result, login_started, login_succeeded, login_failed,
    persistence_failed. Payloads always carry ``location_id``.
    """

    def notify(self, event: str, payload: dict[str, Any]) -> None: ...
