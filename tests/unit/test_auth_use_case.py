from __future__ import annotations

from datetime import timedelta

import pytest

from portal_sync.application.use_cases.get_auth_status import GetAuthStatusUseCase
from portal_sync.application.use_cases.refresh_session import RefreshSessionUseCase
from portal_sync.domain.errors import ConfigMissing
from portal_sync.domain.model import PersistedCookies
from tests.unit._fakes_auth import NOW, FakeEngine, FakePersistence, FakeProbe, cookies, make_coordinator


def test_status_without_cookies_does_not_log_in():
    engine = FakeEngine()
    uc = GetAuthStatusUseCase(make_coordinator(engine=engine))

    res = uc.execute("loc-1")

    assert not res.authenticated
    assert res.cookie_count == 0
    assert res.last_auth_at is None
    assert engine.calls == 0


def test_status_reports_invalid_cookies_without_refreshing():
    engine = FakeEngine()
    coord = make_coordinator(engine=engine, probe=FakeProbe(valid=False))
    coord.store.set("loc-1", cookies(("JSESSIONID", "old")), NOW)

    res = GetAuthStatusUseCase(coord).execute("loc-1")

    assert not res.cookies_valid
    assert res.state == "invalid"
    assert res.cookie_count == 1
    assert engine.calls == 0


def test_status_of_persisted_cookies():
    stored = cookies(("JSESSIONID", "disk"), ("SSO", "y"))
    persistence = FakePersistence(PersistedCookies(stored, NOW - timedelta(hours=2)))
    coord = make_coordinator(persistence=persistence, probe=FakeProbe(valid=True))

    res = GetAuthStatusUseCase(coord).execute("loc-1")

    assert res.authenticated
    assert res.state == "valid"
    assert res.last_auth_at == NOW - timedelta(hours=2)
    assert res.as_dict()["last_auth_at"] == "2025-01-01T10:00:00+00:00"


def test_refresh_session_forces_login():
    engine = FakeEngine(cookies(("JSESSIONID", "new"), ("SSO", "z")))
    coord = make_coordinator(engine=engine)
    coord.store.set("loc-1", cookies(("JSESSIONID", "old")), NOW - timedelta(hours=1))

    res = RefreshSessionUseCase(coord).execute("loc-1")

    assert res.authenticated
    assert res.cookie_count == 2
    assert res.last_auth_at == NOW
    assert res.state == "valid"
    assert engine.calls == 1


def test_refresh_session_without_credentials():
    with pytest.raises(ConfigMissing):
        RefreshSessionUseCase(make_coordinator()).execute("no-creds")
