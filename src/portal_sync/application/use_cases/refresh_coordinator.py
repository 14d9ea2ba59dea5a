from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from concurrent.futures import Future, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from portal_sync.application.ports.clock_port import Clock, SystemClock
from portal_sync.application.ports.location_config_port import LocationConfigPort
from portal_sync.application.ports.login_engine_port import LoginEnginePort
from portal_sync.application.ports.notification_port import NotificationPort
from portal_sync.application.ports.persistence_port import PersistenceGatewayPort
from portal_sync.application.ports.session_store_port import CredentialStorePort
from portal_sync.application.ports.validity_probe_port import ProbeResult, ValidityProbePort
from portal_sync.domain.errors import LoginFailed, LoginTimeout, PersistenceError
from portal_sync.domain.model import CookieSet, CredentialRecord, LocationConfig, SessionState

logger = logging.getLogger(__name__)


@dataclass
class _Episode:
    """One in-flight login for a location. Every concurrent caller waits on ``future``.

    The episode stays in flight until the worker returns, even past
    ``deadline``: an engine that overruns its timeout keeps the location in
    REFRESHING and later joiners fail at once with LoginTimeout.
    """

    deadline: float
    future: Future[CookieSet] = field(default_factory=Future)
    overdue_reported: bool = False


class RefreshCoordinator:
    """Hands out usable portal cookies per location, logging in when needed.

    Cached cookies are probed before use; when they fail (or there are none) a
    browser login runs on its own thread. Callers that arrive while a login is
    in flight for the same location wait for that login instead of starting
    another: parallel logins against one SSO account get throttled or locked
    by the vendor. Locations never wait on each other.

    A failed login is reported to every waiter and is not retried here.
    """

    def __init__(
        self,
        store: CredentialStorePort,
        persistence: PersistenceGatewayPort,
        probe: ValidityProbePort,
        locations: LocationConfigPort,
        engine: LoginEnginePort,
        *,
        cookie_domains: Iterable[str],
        refresh_timeout: float = 60.0,
        clock: Clock | None = None,
        notifier: NotificationPort | None = None,
    ) -> None:
        self.store = store
        self.persistence = persistence
        self.probe = probe
        self.locations = locations
        self.engine = engine
        self.cookie_domains = tuple(cookie_domains)
        self.refresh_timeout = refresh_timeout
        self.clock = clock or SystemClock()
        self.notifier = notifier
        self._inflight: dict[str, _Episode] = {}
        self._inflight_lock = threading.Lock()
        self._states: dict[str, SessionState] = {}

    # ---------- Public API ----------
    def get_valid_cookies(self, location_id: str, *, timeout: float | None = None) -> CookieSet:
        """Return cookies that passed the probe, or fresh ones from a login.

        ``timeout`` bounds how long this caller waits on a login; giving up
        does not stop the login for other callers.
        """
        record = self.candidate(location_id)
        if record is not None and record.cookies:
            if self.check(location_id, record).valid:
                return record.cookies
            logger.info("[REFRESH] Cookies for %s invalid or expired, refreshing", location_id)
        else:
            logger.info("[REFRESH] No cookies for %s, logging in", location_id)
        return self.refresh(location_id, timeout=timeout)

    def refresh(self, location_id: str, *, timeout: float | None = None) -> CookieSet:
        """Log in (or join the login already running) without probing first."""
        # raises ConfigMissing before any login bookkeeping happens
        config = self.locations.get(location_id)
        episode = self._join_or_start(location_id, config)
        wait = episode.deadline - time.monotonic()
        if timeout is not None:
            wait = min(wait, timeout)
        try:
            return episode.future.result(timeout=max(wait, 0.0))
        except FutureTimeout:
            logger.warning("[REFRESH] Gave up waiting for login of %s after %.1fs", location_id, max(wait, 0.0))
            raise LoginTimeout(f"Login for location {location_id} did not finish in time") from None

    def candidate(self, location_id: str) -> CredentialRecord | None:
        """Cached record, falling back to the persisted one on the first miss only."""
        record = self.store.get(location_id)
        if record is not None:
            return record
        if not self.store.claim_load(location_id):
            # another caller may still be reading the durable copy
            if not self.store.wait_loaded(location_id, timeout=self.refresh_timeout):
                logger.warning("[REFRESH] Stored cookies for %s still loading, continuing without them", location_id)
            return self.store.get(location_id)
        try:
            return self._load_persisted(location_id)
        finally:
            self.store.finish_load(location_id)

    def _load_persisted(self, location_id: str) -> CredentialRecord | None:
        try:
            persisted = self.persistence.load(location_id)
        except PersistenceError as e:
            logger.warning("[REFRESH] Could not read stored cookies for %s: %s", location_id, e)
            self._notify("persistence_failed", location_id, operation="load", error=str(e))
            return None
        if persisted is None:
            return None
        return self.store.seed(location_id, persisted.cookies, persisted.updated_at)

    def check(self, location_id: str, record: CredentialRecord) -> ProbeResult:
        result = self.probe.check(location_id, record.cookies)
        self._states[location_id] = SessionState.VALID if result.valid else SessionState.INVALID
        self._notify("probe_result", location_id, valid=result.valid, reason=result.reason)
        return result

    def state(self, location_id: str) -> SessionState:
        with self._inflight_lock:
            if location_id in self._inflight:
                return SessionState.REFRESHING
        return self._states.get(location_id, SessionState.UNPROBED)

    # ---------- Single-flight ----------
    def _join_or_start(self, location_id: str, config: LocationConfig) -> _Episode:
        with self._inflight_lock:
            episode = self._inflight.get(location_id)
            if episode is not None:
                if time.monotonic() < episode.deadline:
                    logger.info("[REFRESH] Login already running for %s, waiting for it", location_id)
                elif not episode.overdue_reported:
                    episode.overdue_reported = True
                    logger.warning(
                        "[REFRESH] Login for %s is past its %.0fs deadline and has not returned yet",
                        location_id, self.refresh_timeout,
                    )
                return episode
            episode = _Episode(deadline=time.monotonic() + self.refresh_timeout)
            self._inflight[location_id] = episode

        worker = threading.Thread(
            target=self._run,
            args=(location_id, config, episode),
            name=f"portal-login-{location_id}",
            daemon=True,
        )
        try:
            worker.start()
        except RuntimeError as e:
            self._finish(location_id, episode, error=LoginFailed(f"could not start login worker: {e}"))
        return episode

    def _run(self, location_id: str, config: LocationConfig, episode: _Episode) -> None:
        logger.info("[REFRESH] Starting portal login for location %s (%s)", location_id, config.name)
        self._notify("login_started", location_id)
        started = time.monotonic()
        try:
            cookies = self._login(location_id, config, episode)
        except Exception as e:
            failure = e if isinstance(e, LoginFailed) else LoginFailed(f"{e.__class__.__name__}: {e}")
            self._states[location_id] = SessionState.FAILED
            logger.error("[REFRESH] Login for %s failed: %s", location_id, failure.reason)
            for artifact in failure.artifacts:
                logger.error("[REFRESH]   diagnostic artifact: %s", artifact)
            self._notify(
                "login_failed", location_id,
                reason=failure.reason, timeout=isinstance(failure, LoginTimeout),
                seconds=time.monotonic() - started,
            )
            self._finish(location_id, episode, error=failure)
            return
        self._notify("login_succeeded", location_id, cookies=len(cookies), seconds=time.monotonic() - started)
        self._finish(location_id, episode, result=cookies)

    def _login(self, location_id: str, config: LocationConfig, episode: _Episode) -> CookieSet:
        raw = self.engine.login(config, timeout=max(episode.deadline - time.monotonic(), 0.0))
        if time.monotonic() > episode.deadline:
            raise LoginTimeout(f"Login for location {location_id} exceeded {self.refresh_timeout:.0f}s")

        cookies = raw.restricted_to(self.cookie_domains)
        logger.info(
            "[REFRESH] Login for %s returned %d cookies, kept %d for %s",
            location_id, len(raw), len(cookies), ", ".join(self.cookie_domains),
        )
        if not cookies:
            raise LoginFailed("Login finished but produced no portal cookies")

        produced_at = self.clock.now()
        self.store.set(location_id, cookies, produced_at)
        self._states[location_id] = SessionState.VALID
        self._persist(location_id, cookies, produced_at)
        return cookies

    def _persist(self, location_id: str, cookies: CookieSet, produced_at: datetime) -> None:
        try:
            self.persistence.save(location_id, cookies, produced_at)
        except PersistenceError as e:
            logger.warning("[REFRESH] Failed to persist cookies for %s: %s", location_id, e)
            self._notify("persistence_failed", location_id, operation="save", error=str(e))
        except Exception:
            logger.exception("[REFRESH] Unexpected error persisting cookies for %s", location_id)
            self._notify("persistence_failed", location_id, operation="save", error="unexpected")

    def _finish(
        self,
        location_id: str,
        episode: _Episode,
        *,
        result: CookieSet | None = None,
        error: LoginFailed | None = None,
    ) -> None:
        with self._inflight_lock:
            if self._inflight.get(location_id) is episode:
                del self._inflight[location_id]
        if error is not None:
            episode.future.set_exception(error)
        else:
            episode.future.set_result(result if result is not None else CookieSet())

    def _notify(self, event: str, location_id: str, **payload: Any) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(event, {"location_id": location_id, **payload})
        except Exception:
            logger.exception("[REFRESH] Notifier failed on %s", event)
