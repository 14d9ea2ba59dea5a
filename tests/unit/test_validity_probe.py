from __future__ import annotations

import httpx

from portal_sync.application.ports.http_client_port import HttpResponse
from portal_sync.infrastructure.adapters.portal.validity_probe import HttpValidityProbe
from tests.unit._fakes_auth import FakeHttp, cookies

PROBE_URL = "https://dms.example.com/dms/newasis"


def _probe(response=None, error=None):
    http = FakeHttp(response, error)
    return HttpValidityProbe(http, PROBE_URL), http


def test_direct_200_is_valid():
    probe, http = _probe(HttpResponse(200, "<html>dashboard</html>", PROBE_URL, {}))

    result = probe.check("loc-1", cookies(("JSESSIONID", "abc"), ("SSO", "x")))

    assert result.valid
    assert result.status_code == 200
    assert http.requests == [("GET", PROBE_URL, {"Cookie": "JSESSIONID=abc; SSO=x"}, None, False)]


def test_redirect_to_login_is_invalid():
    probe, _ = _probe(HttpResponse(302, "", PROBE_URL, {"Location": "https://sso.example.com/login"}))

    result = probe.check("loc-1", cookies(("JSESSIONID", "stale")))

    assert not result.valid
    assert result.status_code == 302
    assert "sso.example.com/login" in result.reason


def test_error_status_is_invalid():
    for status in (401, 403, 500):
        probe, _ = _probe(HttpResponse(status, "", PROBE_URL, {}))
        result = probe.check("loc-1", cookies(("JSESSIONID", "abc")))
        assert not result.valid
        assert result.status_code == status


def test_network_error_is_invalid():
    probe, _ = _probe(error=httpx.ConnectError("connection refused"))

    result = probe.check("loc-1", cookies(("JSESSIONID", "abc")))

    assert not result.valid
    assert result.status_code is None
    assert "ConnectError" in result.reason
