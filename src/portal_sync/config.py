from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env if present
load_dotenv()

_DEFAULT_BASE_URL = "https://dms-erp-aws-prd.geappliances.com"


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _flag(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    portal_base_url: str = os.getenv("PORTAL_BASE_URL", _DEFAULT_BASE_URL).rstrip("/")
    portal_probe_url: str = os.getenv(
        "PORTAL_PROBE_URL", f"{os.getenv('PORTAL_BASE_URL', _DEFAULT_BASE_URL).rstrip('/')}/dms/newasis"
    )
    portal_cookie_domains: tuple[str, ...] = field(
        default_factory=lambda: _csv(os.getenv("PORTAL_COOKIE_DOMAINS", "geappliances.com"))
    )
    cookie_max_age_hours: float = float(os.getenv("COOKIE_MAX_AGE_HOURS", "24"))
    refresh_timeout_seconds: float = float(os.getenv("REFRESH_TIMEOUT_SECONDS", "60"))
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "30"))
    database_path: str = os.getenv("DATABASE_PATH", ".portal_sync.sqlite")
    playwright_headless: bool = _flag(os.getenv("PLAYWRIGHT_HEADLESS", "true"))
    login_artifacts_dir: str = os.getenv("LOGIN_ARTIFACTS_DIR", "/tmp")
    api_key: str = os.getenv("API_KEY", "")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Single-location deployments may configure SSO here instead of location_settings
    sso_location_id: str = os.getenv("SSO_LOCATION_ID", "")
    sso_username: str = os.getenv("SSO_USERNAME", "")
    sso_password: str = os.getenv("SSO_PASSWORD", "")


settings = Settings()
