from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# =========================
# Value Objects
# =========================
@dataclass(frozen=True)
class Cookie:
    """A single portal session cookie. Identity is (domain, name)."""

    name: str
    value: str
    domain: str
    path: str = "/"
    expires: float | None = None

    @property
    def identity(self) -> tuple[str, str]:
        return self.domain, self.name

    def matches_domain(self, domains: Iterable[str]) -> bool:
        host = self.domain.lstrip(".").lower()
        for d in domains:
            d = d.lstrip(".").lower()
            if d and (host == d or host.endswith("." + d)):
                return True
        return False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
        }
        if self.expires is not None:
            data["expires"] = self.expires
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cookie":
        expires = data.get("expires")
        # Playwright reports session cookies with expires == -1
        if expires is not None and float(expires) < 0:
            expires = None
        return cls(
            name=str(data["name"]),
            value=str(data.get("value", "")),
            domain=str(data.get("domain", "")),
            path=str(data.get("path") or "/"),
            expires=float(expires) if expires is not None else None,
        )


@dataclass(frozen=True)
class CookieSet:
    """Ordered cookies as produced by the login engine.

    Order is significant: some portal endpoints reject a Cookie header whose
    pairs are reordered, so every transformation here keeps insertion order.
    """

    cookies: tuple[Cookie, ...] = ()

    @classmethod
    def of(cls, cookies: Iterable[Cookie]) -> "CookieSet":
        return cls(tuple(cookies))

    @classmethod
    def from_list(cls, raw: Sequence[Mapping[str, Any]]) -> "CookieSet":
        return cls(tuple(Cookie.from_dict(c) for c in raw))

    def to_list(self) -> list[dict[str, Any]]:
        return [c.to_dict() for c in self.cookies]

    def restricted_to(self, domains: Iterable[str]) -> "CookieSet":
        allowed = tuple(domains)
        return CookieSet(tuple(c for c in self.cookies if c.matches_domain(allowed)))

    def names(self) -> list[str]:
        return [c.name for c in self.cookies]

    def __iter__(self) -> Iterator[Cookie]:
        return iter(self.cookies)

    def __len__(self) -> int:
        return len(self.cookies)

    def __bool__(self) -> bool:
        return bool(self.cookies)


# =========================
# Entities
# =========================
class CredentialOrigin(str, Enum):
    MEMORY = "memory"
    PERSISTED = "persisted"


class SessionState(str, Enum):
    UNPROBED = "unprobed"
    VALID = "valid"
    INVALID = "invalid"
    REFRESHING = "refreshing"
    FAILED = "failed"


@dataclass(frozen=True)
class CredentialRecord:
    location_id: str
    cookies: CookieSet
    last_auth_at: datetime
    origin: CredentialOrigin = CredentialOrigin.MEMORY


@dataclass(frozen=True)
class PersistedCookies:
    cookies: CookieSet
    updated_at: datetime


@dataclass(frozen=True)
class LocationConfig:
    location_id: str
    name: str
    sso_username: str
    sso_password: str = field(repr=False)
