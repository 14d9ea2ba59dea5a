from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry

from portal_sync.application.ports.location_config_port import LocationConfigPort
from portal_sync.application.use_cases.cookie_header import CookieHeaderBuilder
from portal_sync.application.use_cases.get_auth_status import GetAuthStatusUseCase
from portal_sync.application.use_cases.refresh_coordinator import RefreshCoordinator
from portal_sync.application.use_cases.refresh_session import RefreshSessionUseCase
from portal_sync.config import Settings
from portal_sync.infrastructure.adapters.http.httpx_client import HttpxClient
from portal_sync.infrastructure.adapters.locations.sqlite_provider import (
    SQLiteLocationConfigProvider,
    StaticLocationConfigProvider,
)
from portal_sync.infrastructure.adapters.notification_adapter import (
    FanOutNotificationAdapter,
    LoggingNotificationAdapter,
    PrometheusNotificationAdapter,
)
from portal_sync.infrastructure.adapters.portal.playwright_login import PlaywrightLoginEngine
from portal_sync.infrastructure.adapters.portal.portal_client import PortalClient
from portal_sync.infrastructure.adapters.portal.validity_probe import HttpValidityProbe
from portal_sync.infrastructure.adapters.session.memory_store import CredentialStore
from portal_sync.infrastructure.adapters.session.sqlite_store import SQLitePersistenceGateway


@dataclass
class Container:
    coordinator: RefreshCoordinator
    headers: CookieHeaderBuilder
    status: GetAuthStatusUseCase
    refresh: RefreshSessionUseCase
    portal: PortalClient
    locations: LocationConfigPort


def build_locations(settings: Settings) -> LocationConfigPort:
    if settings.sso_location_id:
        return StaticLocationConfigProvider({
            settings.sso_location_id: {
                "name": settings.sso_location_id,
                "sso_username": settings.sso_username,
                "sso_password": settings.sso_password,
            }
        })
    return SQLiteLocationConfigProvider(db_path=settings.database_path)


def build_container(settings: Settings, *, registry: CollectorRegistry | None = None) -> Container:
    # probe must see the redirect itself, so one attempt and no retry
    probe_http = HttpxClient(timeout=settings.http_timeout, max_attempts=1)
    portal_http = HttpxClient(timeout=settings.http_timeout)

    notifier = LoggingNotificationAdapter()
    if registry is not None:
        notifier = FanOutNotificationAdapter(notifier, PrometheusNotificationAdapter(registry))

    locations = build_locations(settings)
    coordinator = RefreshCoordinator(
        store=CredentialStore(),
        persistence=SQLitePersistenceGateway(
            db_path=settings.database_path, max_age_hours=settings.cookie_max_age_hours
        ),
        probe=HttpValidityProbe(probe_http, settings.portal_probe_url),
        locations=locations,
        engine=PlaywrightLoginEngine(
            settings.portal_probe_url,
            headless=settings.playwright_headless,
            artifacts_dir=settings.login_artifacts_dir,
        ),
        cookie_domains=settings.portal_cookie_domains,
        refresh_timeout=settings.refresh_timeout_seconds,
        notifier=notifier,
    )
    headers = CookieHeaderBuilder(coordinator)
    return Container(
        coordinator=coordinator,
        headers=headers,
        status=GetAuthStatusUseCase(coordinator),
        refresh=RefreshSessionUseCase(coordinator),
        portal=PortalClient(portal_http, headers, settings.portal_base_url),
        locations=locations,
    )
