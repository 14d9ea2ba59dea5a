from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin

from portal_sync.application.ports.http_client_port import HttpClientPort, HttpResponse
from portal_sync.application.use_cases.cookie_header import CookieHeaderBuilder
from portal_sync.domain.errors import PortalAuthError, SessionExpired

logger = logging.getLogger(__name__)


class PortalRequestError(PortalAuthError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class PortalClient:
    """Authenticated requests against portal endpoints for one location at a time.

    Data endpoints answer with CSV/XLS; an HTML page or a redirect to the SSO
    in their place means the session died between the probe and the request.
    That surfaces as SessionExpired and the caller decides whether to retry.
    """

    def __init__(self, http: HttpClientPort, headers: CookieHeaderBuilder, base_url: str) -> None:
        self.http = http
        self.headers = headers
        self.base_url = base_url.rstrip("/") + "/"

    def fetch(
        self,
        location_id: str,
        path: str,
        *,
        data: Mapping[str, Any] | str | None = None,
        referer: str | None = None,
        expect_html: bool = False,
    ) -> HttpResponse:
        url = urljoin(self.base_url, path.lstrip("/"))
        request_headers = {"Cookie": self.headers.build_header(location_id)}
        if referer:
            request_headers["Referer"] = referer
        if data is None:
            resp = self.http.get(url, headers=request_headers, allow_redirects=False)
        else:
            request_headers["Content-Type"] = "application/x-www-form-urlencoded"
            resp = self.http.post(url, data=data, headers=request_headers, allow_redirects=False)

        if resp.is_redirect:
            raise SessionExpired(f"{url} redirected to {resp.location or '<no location>'}")
        if resp.status_code >= 400:
            snippet = resp.text.strip()[:200]
            details = f" Response: {snippet}" if snippet else ""
            raise PortalRequestError(f"Failed to fetch {url}: {resp.status_code}.{details}", resp.status_code)
        if not expect_html and resp.looks_like_html():
            raise SessionExpired("Received HTML instead of data - authentication may have expired")
        logger.info("[PORTAL] %s %s -> %d (%d bytes)", "POST" if data is not None else "GET", url, resp.status_code, len(resp.content))
        return resp
