from __future__ import annotations

import logging
import re
import time
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlparse

from bs4 import BeautifulSoup  # type: ignore[import-untyped]
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright
from playwright.sync_api import TimeoutError as PlaywrightTimeout

from portal_sync.application.ports.login_engine_port import LoginEnginePort
from portal_sync.domain.errors import LoginFailed, LoginTimeout
from portal_sync.domain.model import Cookie, CookieSet, LocationConfig
from portal_sync.infrastructure.adapters.http.httpx_client import USER_AGENT

logger = logging.getLogger(__name__)

# Vendor SSO form: plain text/password fields and a "LOG IN" button
_USERNAME_SELECTOR = 'input[type="text"], input[type="email"], input[name*="user"]'
_PASSWORD_SELECTOR = 'input[type="password"]'
_SUBMIT_SELECTOR = 'button[type="submit"], input[type="submit"], button:has-text("LOG IN")'
_CONSENT_SELECTOR = (
    'button:has-text("Continue"), button:has-text("Accept"), '
    'button:has-text("Allow"), input[type="submit"]'
)
_LOGIN_URL_MARKERS = ("login", "sso", "auth")
_ERROR_SELECTORS = (".error", ".alert", "[role=alert]", ".message-error", "#error")


def _on_login_page(url: str) -> bool:
    lowered = url.lower()
    return any(marker in lowered for marker in _LOGIN_URL_MARKERS)


class PlaywrightLoginEngine(LoginEnginePort):
    """Logs into the portal with a real Chromium session and returns its cookies.

    Flow:
      1) open the portal entry page, which bounces to the SSO form
      2) fill username/password and submit
      3) click through a consent/continue step if the SSO shows one
      4) wait until the browser is back on the portal host
      5) export every cookie of the browser context

    Each failure takes a screenshot and raises LoginFailed with the paths
    attached. A fresh browser is launched per login.
    """

    def __init__(
        self,
        entry_url: str,
        *,
        headless: bool = True,
        artifacts_dir: str = "/tmp",
        user_agent: str = USER_AGENT,
    ) -> None:
        self.entry_url = entry_url
        self.portal_host = urlparse(entry_url).netloc.lower()
        self.headless = headless
        self.artifacts_dir = Path(artifacts_dir)
        self.user_agent = user_agent

    def login(self, config: LocationConfig, *, timeout: float) -> CookieSet:
        if timeout <= 0:
            raise LoginTimeout(f"No time left to log in location {config.location_id}")
        deadline = time.monotonic() + timeout
        artifacts: list[str] = []
        logger.info(
            "[LOGIN] Launching browser in %s mode for %s",
            "headless" if self.headless else "headed", config.name,
        )
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(
                    headless=self.headless,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                try:
                    context = browser.new_context(user_agent=self.user_agent)
                    context.set_default_timeout(timeout * 1000)
                    page = context.new_page()
                    self._sign_in(page, config, deadline, artifacts)
                    raw = context.cookies()
                finally:
                    browser.close()
        except PlaywrightTimeout as e:
            raise LoginTimeout(f"Portal login timed out: {e.message}", artifacts) from e
        except PlaywrightError as e:
            raise LoginFailed(f"Browser automation error: {e.message}", artifacts) from e

        cookies = CookieSet.of(Cookie.from_dict(c) for c in raw)
        for c in cookies:
            logger.debug("[LOGIN]   %s: %s", c.domain, c.name)
        logger.info("[LOGIN] Extracted %d cookies for %s", len(cookies), config.name)
        return cookies

    # ---------- Steps ----------
    def _sign_in(self, page: Page, config: LocationConfig, deadline: float, artifacts: list[str]) -> None:
        logger.info("[LOGIN] Navigating to %s", self.entry_url)
        page.goto(self.entry_url, wait_until="networkidle", timeout=self._budget_ms(deadline))
        if not _on_login_page(page.url):
            logger.info("[LOGIN] Portal did not ask for SSO, browser session already valid")
            return

        # SSO form renders after the redirect settles
        page.wait_for_timeout(2000)
        self._screenshot(page, config, "sso-page-before-login", artifacts)

        for selector, value, label in (
            (_USERNAME_SELECTOR, config.sso_username, "username"),
            (_PASSWORD_SELECTOR, config.sso_password, "password"),
        ):
            field = page.query_selector(selector)
            if field is None:
                raise self._failure(page, config, f"Could not find {label} field with selector: {selector}", artifacts)
            field.fill(value)
            logger.info("[LOGIN] Filled %s field", label)

        submit = page.query_selector(_SUBMIT_SELECTOR)
        if submit is None:
            raise self._failure(page, config, f"Could not find submit button with selector: {_SUBMIT_SELECTOR}", artifacts)
        logger.info("[LOGIN] Submitting login form")
        submit.click()
        page.wait_for_load_state("networkidle", timeout=self._budget_ms(deadline))
        self._screenshot(page, config, "after-submit", artifacts)
        logger.info("[LOGIN] After submit URL: %s", page.url)

        if _on_login_page(page.url):
            consent = page.locator(_CONSENT_SELECTOR)
            if consent.count() > 0:
                logger.info("[LOGIN] Found continue/consent button, clicking")
                consent.first.click()
                page.wait_for_timeout(2000)

        try:
            page.wait_for_url(self._is_portal_url, timeout=min(30_000, self._budget_ms(deadline)))
        except PlaywrightTimeout:
            raise self._failure(page, config, f"Login may have failed - stuck at {page.url}", artifacts) from None

        # cookies keep arriving until the landing page settles
        page.wait_for_load_state("networkidle", timeout=self._budget_ms(deadline))
        logger.info("[LOGIN] Login successful, final URL: %s", page.url)

    def _is_portal_url(self, url: str) -> bool:
        parsed = urlparse(url)
        return parsed.netloc.lower() == self.portal_host and not _on_login_page(parsed.path)

    # ---------- Diagnostics ----------
    @staticmethod
    def _budget_ms(deadline: float) -> float:
        return max(deadline - time.monotonic(), 0.1) * 1000

    def _screenshot(self, page: Page, config: LocationConfig, label: str, artifacts: list[str]) -> None:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
        path = self.artifacts_dir / f"{config.location_id}-{label}-{stamp}.png"
        try:
            self.artifacts_dir.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, OSError) as e:
            logger.debug("[LOGIN] Screenshot %s not saved: %s", label, e)
            return
        artifacts.append(str(path))
        logger.info("[LOGIN] Screenshot saved: %s", path)

    def _failure(self, page: Page, config: LocationConfig, reason: str, artifacts: list[str]) -> LoginFailed:
        self._screenshot(page, config, "login-error", artifacts)
        try:
            hint = page_hint(page.content())
        except PlaywrightError:
            hint = ""
        return LoginFailed(f"{reason} ({hint})" if hint else reason, artifacts)


def page_hint(html: str, limit: int = 200) -> str:
    """Title plus any visible error banner of an SSO page, for failure messages."""
    soup = BeautifulSoup(html, "html.parser")
    parts: list[str] = []
    if soup.title and soup.title.get_text(strip=True):
        parts.append(soup.title.get_text(strip=True))
    for selector in _ERROR_SELECTORS:
        node = soup.select_one(selector)
        if node is not None:
            text = re.sub(r"\s+", " ", node.get_text(" ", strip=True))
            if text:
                parts.append(text)
                break
    return " | ".join(parts)[:limit]
