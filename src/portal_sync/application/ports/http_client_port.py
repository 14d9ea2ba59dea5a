from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class HttpResponse:
    def __init__(
        self,
        status_code: int,
        text: str,
        url: str,
        headers: Mapping[str, str],
        *,
        content: bytes | None = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = {k.lower(): v for k, v in headers.items()}
        self.content = content if content is not None else text.encode()

    @property
    def is_redirect(self) -> bool:
        return self.status_code in REDIRECT_STATUSES

    @property
    def location(self) -> str:
        return self.headers.get("location", "")

    def looks_like_html(self) -> bool:
        head = self.text.lstrip()[:64].lower()
        return head.startswith("<!doctype") or head.startswith("<html")


class HttpClientPort(Protocol):
    """Minimal HTTP client abstraction. Cookies travel as explicit headers."""

    def get(
        self, url: str, *, headers: Mapping[str, str] | None = None, allow_redirects: bool = True
    ) -> HttpResponse: ...
    def post(
        self,
        url: str,
        *,
        data: Mapping[str, Any] | str | None = None,
        headers: Mapping[str, str] | None = None,
        allow_redirects: bool = True,
    ) -> HttpResponse: ...
