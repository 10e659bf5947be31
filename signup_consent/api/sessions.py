"""
Consent session registry for the HTTP adapter.

Each browser page load opens one session: a ConsentReconciler whose local
record lives in the request's ``fides_consent`` cookie. Sessions share one
HTTP client and are kept in process memory until closed or evicted.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import httpx
import structlog

from signup_consent.clients.base import create_http_client
from signup_consent.core.config import ReconcilerConfig, get_config
from signup_consent.identity.storage import RequestCookieStore
from signup_consent.reconciler import ConsentReconciler

logger = structlog.get_logger(__name__)


@dataclass
class ConsentSession:
    session_id: str
    reconciler: ConsentReconciler
    cookies: RequestCookieStore
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class SessionRegistry:
    """In-memory registry of open consent sessions, oldest evicted first."""

    def __init__(
        self,
        config: ReconcilerConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        max_sessions: int = 1000,
    ) -> None:
        self.config = config or get_config()
        self._owns_http_client = http_client is None
        self._http = http_client or create_http_client(self.config)
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, ConsentSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    async def open(self, cookies: Mapping[str, str]) -> ConsentSession:
        """Create a session from the request cookies and run its startup chain."""
        store = RequestCookieStore(cookies)
        reconciler = ConsentReconciler(store, config=self.config, http_client=self._http)
        session = ConsentSession(
            session_id=uuid4().hex,
            reconciler=reconciler,
            cookies=store,
        )
        self._sessions[session.session_id] = session
        await self._evict_overflow()

        await reconciler.start()
        logger.info(
            "consent_session_opened",
            session_id=session.session_id,
            state=reconciler.state.value,
        )
        return session

    def get(self, session_id: str) -> ConsentSession | None:
        return self._sessions.get(session_id)

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.reconciler.close()
        logger.info("consent_session_closed", session_id=session_id)
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)
        if self._owns_http_client and not self._http.is_closed:
            await self._http.aclose()

    async def _evict_overflow(self) -> None:
        while len(self._sessions) > self._max_sessions:
            session_id, session = self._sessions.popitem(last=False)
            await session.reconciler.close()
            logger.info("consent_session_evicted", session_id=session_id)
