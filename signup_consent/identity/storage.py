"""
Persistence backends for the local consent record.

The identity store only needs a single named text slot with an expiry, so
every backend implements the two-method ``KeyValueStore`` protocol.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """A named text slot with time-to-live, e.g. a browser cookie."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl: int) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store honouring TTLs."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> str | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    def set(self, key: str, value: str, ttl: int) -> None:
        self._values[key] = (value, self._clock() + ttl)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None


class CookieJarStore:
    """
    Emulates ``document.cookie`` for a single browsing context.

    Reads look the name up in a ``name=value; other=value`` header string;
    writes append a ``Set-Cookie`` style line carrying path and max-age and
    update the header string the next read sees.
    """

    def __init__(self, cookie_header: str = "", path: str = "/") -> None:
        self._cookies: dict[str, str] = parse_cookie_header(cookie_header)
        self._path = path
        self.set_cookie_headers: list[str] = []

    @property
    def cookie_header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def get(self, key: str) -> str | None:
        # Same lookup the browser code performs: split on "; <name>=".
        parts = f"; {self.cookie_header}".split(f"; {key}=")
        if len(parts) != 2:
            return None
        return parts[1].split(";")[0]

    def set(self, key: str, value: str, ttl: int) -> None:
        self.set_cookie_headers.append(f"{key}={value}; path={self._path}; max-age={ttl}")
        if ttl <= 0:
            self._cookies.pop(key, None)
        else:
            self._cookies[key] = value


def parse_cookie_header(header: str) -> dict[str, str]:
    """Split a ``Cookie`` header into name/value pairs, first one wins."""
    cookies: dict[str, str] = {}
    for chunk in header.split(";"):
        name, sep, value = chunk.strip().partition("=")
        if not sep or not name:
            continue
        cookies.setdefault(name, value)
    return cookies


@dataclass
class PendingCookie:
    key: str
    value: str
    max_age: int


class RequestCookieStore:
    """
    Store seeded from an incoming request's cookies.

    Writes are kept in ``pending`` so the HTTP layer can copy them onto the
    outgoing response.
    """

    def __init__(self, cookies: Mapping[str, str] | None = None) -> None:
        self._cookies = dict(cookies or {})
        self.pending: dict[str, PendingCookie] = {}

    def get(self, key: str) -> str | None:
        return self._cookies.get(key)

    def set(self, key: str, value: str, ttl: int) -> None:
        self._cookies[key] = value
        self.pending[key] = PendingCookie(key=key, value=value, max_age=ttl)

    def drain(self) -> list[PendingCookie]:
        pending = list(self.pending.values())
        self.pending.clear()
        return pending
