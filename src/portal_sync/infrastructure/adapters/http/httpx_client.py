from __future__ import annotations

import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Mapping

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from portal_sync.application.ports.http_client_port import HttpClientPort, HttpResponse

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class HttpTemporaryError(Exception):
    pass


class HttpxClient(HttpClientPort):
    def __init__(
        self,
        timeout: float = 30.0,
        *,
        max_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """HTTP client adapter backed by a shared httpx.Client.

        - Refuses to store cookies: the same client serves every location,
          so callers send cookies as an explicit Cookie header
        - Retries network errors and 5xx answers up to ``max_attempts`` times

        Args:
            timeout (float, optional): Timeout for requests. Defaults to 30.0.
            max_attempts (int, optional): Attempts per request, 1 disables retries.
            transport (httpx.BaseTransport | None, optional): Transport override,
                e.g. ``httpx.MockTransport`` in tests. Defaults to None.
        """
        self._client = httpx.Client(timeout=timeout, headers={
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "User-Agent": USER_AGENT,
        }, cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])), follow_redirects=True, transport=transport)
        self._max_attempts = max(1, max_attempts)

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(initial=1, max=8),
            retry=retry_if_exception_type(HttpTemporaryError),
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> HttpResponse:
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise HttpTemporaryError(f"{method} {url} -> {e.__class__.__name__}: {e}") from e
        if resp.status_code >= 500:
            raise HttpTemporaryError(f"{method} {url} -> {resp.status_code}")
        return HttpResponse(resp.status_code, resp.text, str(resp.url), resp.headers, content=resp.content)

    def get(self, url: str, *, headers: Mapping[str, str] | None = None, allow_redirects: bool = True) -> HttpResponse:
        """Gets the given URL.

        Args:
            url (str): URL to get.
            headers (Mapping[str, str] | None, optional): Headers to include. Defaults to None.
            allow_redirects (bool, optional): Whether to allow redirects. Defaults to True.

        Returns:
            HttpResponse: Response from the server.
        """
        for attempt in self._retrying():
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.debug("[HTTP] retrying GET %s (attempt %d)", url, attempt.retry_state.attempt_number)
                return self._send("GET", url, headers=headers, follow_redirects=allow_redirects)
        raise AssertionError("unreachable")

    def post(
        self,
        url: str,
        *,
        data: Mapping[str, Any] | str | None = None,
        headers: Mapping[str, str] | None = None,
        allow_redirects: bool = True,
    ) -> HttpResponse:
        """Posts data to the given URL.

        Args:
            url (str): URL to post to.
            data (Mapping[str, Any] | str | None, optional): Form fields or a raw
                urlencoded body. Defaults to None.
            headers (Mapping[str, str] | None, optional): Headers to include. Defaults to None.
            allow_redirects (bool, optional): Whether to allow redirects. Defaults to True.

        Returns:
            HttpResponse: Response from the server.
        """
        body: dict[str, Any] = {"content": data} if isinstance(data, str) else {"data": data}
        for attempt in self._retrying():
            with attempt:
                return self._send("POST", url, headers=headers, follow_redirects=allow_redirects, **body)
        raise AssertionError("unreachable")

    def close(self) -> None:
        self._client.close()
