from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path

from portal_sync.application.ports.clock_port import Clock, SystemClock
from portal_sync.application.ports.persistence_port import PersistenceGatewayPort
from portal_sync.domain.errors import PersistenceError
from portal_sync.domain.model import CookieSet, PersistedCookies

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS portal_credentials (
  location_id TEXT PRIMARY KEY,
  cookies TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
"""


def connect(db_path: str) -> sqlite3.Connection:
    """Open a connection shareable across worker threads (callers serialize access)."""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False, timeout=10)
    if db_path != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL;")
    return conn


class SQLitePersistenceGateway(PersistenceGatewayPort):
    """SQLite-backed durable copy of portal cookies, one row per location.

    Rows hold the cookie list as JSON plus the ISO-8601 time the cookies were
    produced. Rows older than ``max_age`` are ignored on load: an old cookie is
    more likely dead than alive and probing it first only adds a failed request.
    """

    def __init__(
        self,
        db_path: str = ".portal_sync.sqlite",
        *,
        max_age_hours: float = 24,
        clock: Clock | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self.max_age = timedelta(hours=max_age_hours)
        self.clock = clock or SystemClock()
        try:
            self._conn = connect(db_path)
            self._conn.executescript(SCHEMA)
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open credential store at {db_path}: {e}") from e

    def load(self, location_id: str) -> PersistedCookies | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT cookies, updated_at FROM portal_credentials WHERE location_id=?",
                    (location_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"load failed for {location_id}: {e}") from e
        if not row:
            logger.info("[STORE] No stored cookies for location %s", location_id)
            return None

        cookies_json, updated_iso = row
        try:
            cookies = CookieSet.from_list(json.loads(cookies_json or "[]"))
            updated_at = datetime.fromisoformat(updated_iso)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("[STORE] Unreadable cookie record for %s: %s", location_id, e)
            return None
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)

        if not cookies:
            logger.info("[STORE] Stored cookie record for %s is empty", location_id)
            return None
        age = self.clock.now() - updated_at
        if age > self.max_age:
            logger.info(
                "[STORE] Stored cookies for %s are %.1f hours old, will refresh",
                location_id, age.total_seconds() / 3600,
            )
            return None

        logger.info("[STORE] Loaded %d cookies for location %s", len(cookies), location_id)
        return PersistedCookies(cookies=cookies, updated_at=updated_at)

    def save(self, location_id: str, cookies: CookieSet, timestamp: datetime) -> None:
        updated_iso = timestamp.astimezone(UTC).isoformat()
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO portal_credentials (location_id, cookies, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(location_id) DO UPDATE SET cookies=excluded.cookies, updated_at=excluded.updated_at",
                    (location_id, json.dumps(cookies.to_list()), updated_iso),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"save failed for {location_id}: {e}") from e
        logger.info("[STORE] Stored %d cookies for location %s", len(cookies), location_id)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
