from __future__ import annotations

import sqlite3
from datetime import timedelta

import pytest

from portal_sync.domain.errors import PersistenceError
from portal_sync.domain.model import Cookie, CookieSet
from portal_sync.infrastructure.adapters.session.sqlite_store import SQLitePersistenceGateway
from tests.unit._fakes_auth import NOW, FixedClock


def _gateway(tmp_path, now=NOW):
    return SQLitePersistenceGateway(str(tmp_path / "portal.sqlite"), clock=FixedClock(now))


def test_saved_cookies_load_back_in_order(tmp_path):
    gw = _gateway(tmp_path)
    saved = CookieSet.of([
        Cookie("z", "26", "dms.example.com"),
        Cookie("a", "1", ".example.com", path="/dms", expires=1767225600.0),
        Cookie("m", "13", "dms.example.com"),
    ])
    gw.save("loc-1", saved, NOW - timedelta(hours=1))

    loaded = gw.load("loc-1")

    assert loaded.cookies == saved
    assert loaded.updated_at == NOW - timedelta(hours=1)


def test_missing_location_loads_nothing(tmp_path):
    assert _gateway(tmp_path).load("loc-1") is None


def test_record_older_than_a_day_is_ignored(tmp_path):
    gw = _gateway(tmp_path)
    gw.save("loc-1", CookieSet.of([Cookie("JSESSIONID", "x", "dms.example.com")]), NOW - timedelta(hours=25))

    assert gw.load("loc-1") is None


def test_record_exactly_a_day_old_still_loads(tmp_path):
    gw = _gateway(tmp_path)
    gw.save("loc-1", CookieSet.of([Cookie("JSESSIONID", "x", "dms.example.com")]), NOW - timedelta(hours=24))

    assert gw.load("loc-1") is not None


def test_max_age_is_configurable(tmp_path):
    gw = SQLitePersistenceGateway(str(tmp_path / "p.sqlite"), max_age_hours=1, clock=FixedClock())
    gw.save("loc-1", CookieSet.of([Cookie("JSESSIONID", "x", "dms.example.com")]), NOW - timedelta(hours=2))

    assert gw.load("loc-1") is None


def test_empty_record_loads_nothing(tmp_path):
    gw = _gateway(tmp_path)
    gw.save("loc-1", CookieSet(), NOW)

    assert gw.load("loc-1") is None


def test_unreadable_record_loads_nothing(tmp_path):
    path = tmp_path / "portal.sqlite"
    gw = SQLitePersistenceGateway(str(path), clock=FixedClock())
    with sqlite3.connect(path) as conn:
        conn.execute(
            "INSERT INTO portal_credentials (location_id, cookies, updated_at) VALUES (?, ?, ?)",
            ("loc-1", "{not json", NOW.isoformat()),
        )

    assert gw.load("loc-1") is None


def test_save_overwrites_previous_record(tmp_path):
    gw = _gateway(tmp_path)
    gw.save("loc-1", CookieSet.of([Cookie("JSESSIONID", "old", "dms.example.com")]), NOW - timedelta(hours=5))
    gw.save("loc-1", CookieSet.of([Cookie("JSESSIONID", "new", "dms.example.com")]), NOW)

    loaded = gw.load("loc-1")
    assert [c.value for c in loaded.cookies] == ["new"]
    assert loaded.updated_at == NOW


def test_closed_database_raises_persistence_error(tmp_path):
    gw = _gateway(tmp_path)
    gw.close()

    with pytest.raises(PersistenceError):
        gw.load("loc-1")
    with pytest.raises(PersistenceError):
        gw.save("loc-1", CookieSet.of([Cookie("a", "1", "dms.example.com")]), NOW)
