from __future__ import annotations

import threading
import time
from collections import Counter
from datetime import datetime, timezone

from portal_sync.application.ports.clock_port import SystemClock
from portal_sync.application.ports.validity_probe_port import ProbeResult
from portal_sync.application.use_cases.cookie_header import CookieHeaderBuilder
from portal_sync.application.use_cases.get_auth_status import GetAuthStatusUseCase
from portal_sync.application.use_cases.refresh_coordinator import RefreshCoordinator
from portal_sync.application.use_cases.refresh_session import RefreshSessionUseCase
from portal_sync.bootstrap import Container
from portal_sync.domain.errors import PersistenceError
from portal_sync.domain.model import Cookie, CookieSet, PersistedCookies
from portal_sync.infrastructure.adapters.locations.sqlite_provider import StaticLocationConfigProvider
from portal_sync.infrastructure.adapters.portal.portal_client import PortalClient
from portal_sync.infrastructure.adapters.session.memory_store import CredentialStore

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
DOMAINS = ("example.com",)


class FixedClock(SystemClock):
    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


def cookies(*pairs: tuple[str, str], domain: str = "dms.example.com") -> CookieSet:
    return CookieSet.of(Cookie(name, value, domain) for name, value in pairs)


class FakePersistence:
    def __init__(self, record: PersistedCookies | None = None, *, delay: float = 0.0) -> None:
        self.record = record
        self.delay = delay
        self.load_calls = 0
        self.saved: list[tuple[str, CookieSet, datetime]] = []

    def load(self, location_id):
        self.load_calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.record

    def save(self, location_id, cookies, timestamp):
        self.saved.append((location_id, cookies, timestamp))


class BrokenPersistence(FakePersistence):
    def load(self, location_id):
        self.load_calls += 1
        raise PersistenceError("disk I/O error")

    def save(self, location_id, cookies, timestamp):
        raise PersistenceError("database is locked")


class FakeProbe:
    def __init__(self, valid: bool = True) -> None:
        self.valid = valid
        self.checked: list[tuple[str, CookieSet]] = []

    def check(self, location_id, cookies):
        self.checked.append((location_id, cookies))
        return ProbeResult(valid=self.valid, status_code=200 if self.valid else 302)


class FakeEngine:
    """Login engine double. ``gate`` holds logins (optionally only for some locations)."""

    def __init__(
        self,
        result: CookieSet | None = None,
        *,
        error: Exception | None = None,
        gate: threading.Event | None = None,
        gated_locations: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.result = result if result is not None else cookies(("JSESSIONID", "fresh"))
        self.error = error
        self.gate = gate
        self.gated_locations = gated_locations
        self.delay = delay
        self.calls = 0
        self.calls_by_location: Counter[str] = Counter()
        self.timeouts: list[float] = []
        self.started = threading.Event()
        self._lock = threading.Lock()

    def login(self, config, *, timeout):
        with self._lock:
            self.calls += 1
            self.calls_by_location[config.location_id] += 1
            self.timeouts.append(timeout)
        self.started.set()
        if self.gate is not None and (self.gated_locations is None or config.location_id in self.gated_locations):
            self.gate.wait(5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


LOCATIONS = {
    "loc-1": {"name": "Warehouse 1", "sso_username": "user1", "sso_password": "pw1"},
    "loc-A": {"name": "Warehouse A", "sso_username": "userA", "sso_password": "pwA"},
    "loc-B": {"name": "Warehouse B", "sso_username": "userB", "sso_password": "pwB"},
    "no-creds": {"name": "Unconfigured", "sso_username": "", "sso_password": ""},
}


def make_coordinator(
    *,
    engine: FakeEngine | None = None,
    probe: FakeProbe | None = None,
    persistence: FakePersistence | None = None,
    refresh_timeout: float = 5.0,
    notifier=None,
) -> RefreshCoordinator:
    return RefreshCoordinator(
        store=CredentialStore(),
        persistence=persistence if persistence is not None else FakePersistence(),
        probe=probe if probe is not None else FakeProbe(),
        locations=StaticLocationConfigProvider(LOCATIONS),
        engine=engine if engine is not None else FakeEngine(),
        cookie_domains=DOMAINS,
        refresh_timeout=refresh_timeout,
        clock=FixedClock(),
        notifier=notifier,
    )


def eventually(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def notify(self, event, payload):
        self.events.append((event, payload))

    def names(self) -> list[str]:
        return [e for e, _ in self.events]


class FakeHttp:
    """HttpClientPort double answering every request with ``response``."""

    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.requests: list[tuple[str, str, dict, object, bool]] = []

    def get(self, url, *, headers=None, allow_redirects=True):
        return self._answer("GET", url, headers, None, allow_redirects)

    def post(self, url, *, data=None, headers=None, allow_redirects=True):
        return self._answer("POST", url, headers, data, allow_redirects)

    def _answer(self, method, url, headers, data, allow_redirects):
        self.requests.append((method, url, dict(headers or {}), data, allow_redirects))
        if self.error is not None:
            raise self.error
        return self.response


def make_container(coordinator: RefreshCoordinator, http: FakeHttp | None = None) -> Container:
    headers = CookieHeaderBuilder(coordinator)
    return Container(
        coordinator=coordinator,
        headers=headers,
        status=GetAuthStatusUseCase(coordinator),
        refresh=RefreshSessionUseCase(coordinator),
        portal=PortalClient(http or FakeHttp(), headers, "https://dms.example.com"),
        locations=coordinator.locations,
    )
