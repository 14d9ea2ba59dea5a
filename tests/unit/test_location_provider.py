from __future__ import annotations

import pytest

from portal_sync.domain.errors import ConfigMissing
from portal_sync.infrastructure.adapters.locations.sqlite_provider import (
    SQLiteLocationConfigProvider,
    StaticLocationConfigProvider,
)


def test_sqlite_provider_returns_saved_credentials(tmp_path):
    provider = SQLiteLocationConfigProvider(str(tmp_path / "portal.sqlite"))
    provider.upsert("loc-1", name="Warehouse 1", sso_username="user", sso_password="pw")
    provider.upsert("loc-1", name="Warehouse 1", sso_username="user", sso_password="pw2")

    config = provider.get("loc-1")

    assert (config.name, config.sso_username, config.sso_password) == ("Warehouse 1", "user", "pw2")


def test_sqlite_provider_unknown_location(tmp_path):
    provider = SQLiteLocationConfigProvider(str(tmp_path / "portal.sqlite"))

    with pytest.raises(ConfigMissing) as exc:
        provider.get("loc-9")
    assert exc.value.location_id == "loc-9"


def test_blank_password_is_missing_config(tmp_path):
    provider = SQLiteLocationConfigProvider(str(tmp_path / "portal.sqlite"))
    provider.upsert("loc-1", name="", sso_username="user", sso_password="")

    with pytest.raises(ConfigMissing):
        provider.get("loc-1")


def test_static_provider_defaults_name_to_location():
    provider = StaticLocationConfigProvider({"loc-1": {"sso_username": "u", "sso_password": "p"}})

    assert provider.get("loc-1").name == "loc-1"
    with pytest.raises(ConfigMissing):
        provider.get("loc-2")
