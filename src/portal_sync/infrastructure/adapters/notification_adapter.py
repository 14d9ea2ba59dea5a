from __future__ import annotations

import logging
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram

from portal_sync.application.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class LoggingNotificationAdapter(NotificationPort):
    def notify(self, event: str, payload: dict[str, Any]) -> None:
        logger.debug("[%s] %s", event, payload)


class PrometheusNotificationAdapter(NotificationPort):
    """Turns session events into counters on the API's registry."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.probes = Counter(
            "portal_probe_total", "Validity probes by outcome", ["location_id", "valid"], registry=registry
        )
        self.logins = Counter(
            "portal_login_total", "Portal logins by outcome", ["location_id", "outcome"], registry=registry
        )
        self.login_seconds = Histogram(
            "portal_login_seconds", "Wall time of portal logins", ["location_id"],
            buckets=(5, 10, 20, 30, 45, 60, 90), registry=registry,
        )
        self.persistence_failures = Counter(
            "portal_persistence_failures_total", "Cookie persistence failures", ["operation"], registry=registry
        )

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        location = str(payload.get("location_id", ""))
        if event == "probe_result":
            self.probes.labels(location, str(bool(payload.get("valid"))).lower()).inc()
        elif event == "login_succeeded":
            self.logins.labels(location, "success").inc()
            self.login_seconds.labels(location).observe(float(payload.get("seconds", 0.0)))
        elif event == "login_failed":
            self.logins.labels(location, "timeout" if payload.get("timeout") else "failure").inc()
            self.login_seconds.labels(location).observe(float(payload.get("seconds", 0.0)))
        elif event == "persistence_failed":
            self.persistence_failures.labels(str(payload.get("operation", "unknown"))).inc()


class FanOutNotificationAdapter(NotificationPort):
    def __init__(self, *targets: NotificationPort) -> None:
        self.targets = targets

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        for target in self.targets:
            target.notify(event, payload)
