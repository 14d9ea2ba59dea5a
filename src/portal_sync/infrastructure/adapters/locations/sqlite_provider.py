from __future__ import annotations

import sqlite3
import threading
from collections.abc import Mapping

from portal_sync.application.ports.location_config_port import LocationConfigPort
from portal_sync.domain.errors import ConfigMissing
from portal_sync.domain.model import LocationConfig
from portal_sync.infrastructure.adapters.session.sqlite_store import connect

SCHEMA = """
CREATE TABLE IF NOT EXISTS location_settings (
  location_id TEXT PRIMARY KEY,
  name TEXT NOT NULL DEFAULT '',
  sso_username TEXT,
  sso_password TEXT
);
"""


def _checked(location_id: str, name: str, username: str | None, password: str | None) -> LocationConfig:
    if not username or not password:
        raise ConfigMissing(location_id)
    return LocationConfig(location_id=location_id, name=name or location_id, sso_username=username, sso_password=password)


class SQLiteLocationConfigProvider(LocationConfigPort):
    """Reads SSO credentials from the ``location_settings`` table."""

    def __init__(self, db_path: str = ".portal_sync.sqlite") -> None:
        self._lock = threading.Lock()
        self._conn = connect(db_path)
        self._conn.executescript(SCHEMA)
        self._conn.commit()

    def get(self, location_id: str) -> LocationConfig:
        with self._lock:
            row = self._conn.execute(
                "SELECT name, sso_username, sso_password FROM location_settings WHERE location_id=?",
                (location_id,),
            ).fetchone()
        if not row:
            raise ConfigMissing(location_id, "Location not found")
        return _checked(location_id, *row)

    def upsert(self, location_id: str, *, name: str, sso_username: str, sso_password: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO location_settings (location_id, name, sso_username, sso_password) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(location_id) DO UPDATE SET name=excluded.name, "
                "sso_username=excluded.sso_username, sso_password=excluded.sso_password",
                (location_id, name, sso_username, sso_password),
            )
            self._conn.commit()


class StaticLocationConfigProvider(LocationConfigPort):
    """Credentials from an in-process mapping: location_id -> {name, sso_username, sso_password}."""

    def __init__(self, locations: Mapping[str, Mapping[str, str]]) -> None:
        self._locations = {k: dict(v) for k, v in locations.items()}

    def get(self, location_id: str) -> LocationConfig:
        entry = self._locations.get(location_id)
        if entry is None:
            raise ConfigMissing(location_id, "Location not found")
        return _checked(location_id, entry.get("name", ""), entry.get("sso_username"), entry.get("sso_password"))
