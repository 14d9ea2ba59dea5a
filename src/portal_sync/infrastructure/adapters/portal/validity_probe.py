from __future__ import annotations

import logging

from portal_sync.application.ports.http_client_port import HttpClientPort, HttpResponse
from portal_sync.application.ports.validity_probe_port import ProbeResult, ValidityProbePort
from portal_sync.application.use_cases.cookie_header import render_cookie_header
from portal_sync.domain.errors import ProbeFailed
from portal_sync.domain.model import CookieSet

logger = logging.getLogger(__name__)


class HttpValidityProbe(ValidityProbePort):
    """Checks cookies with one GET to an authenticated-only portal page.

    Redirects are not followed: the portal answers stale cookies with a
    redirect to its SSO login, which a redirect-following client would report
    as a 200. Only a direct 200 counts as valid.
    """

    def __init__(self, http: HttpClientPort, probe_url: str) -> None:
        self.http = http
        self.probe_url = probe_url

    def check(self, location_id: str, cookies: CookieSet) -> ProbeResult:
        try:
            resp = self.http.get(
                self.probe_url,
                headers={"Cookie": render_cookie_header(cookies)},
                allow_redirects=False,
            )
            self._classify(resp)
        except ProbeFailed as e:
            logger.info("[PROBE] %s: cookies rejected (%s)", location_id, e)
            return ProbeResult(valid=False, status_code=e.status_code, reason=str(e))
        except Exception as e:
            # network trouble means unauthenticated, never "assume still valid"
            logger.warning("[PROBE] %s: probe request failed: %s", location_id, e)
            return ProbeResult(valid=False, reason=f"{e.__class__.__name__}: {e}")
        logger.debug("[PROBE] %s: cookies accepted", location_id)
        return ProbeResult(valid=True, status_code=resp.status_code)

    @staticmethod
    def _classify(resp: HttpResponse) -> None:
        if resp.is_redirect:
            raise ProbeFailed(f"redirected to {resp.location or '<no location>'}", resp.status_code)
        if resp.status_code != 200:
            raise ProbeFailed(f"status {resp.status_code}", resp.status_code)
