"""
Shared HTTP plumbing for the remote consent clients.

Every client issues its calls through one injected ``httpx.AsyncClient``
and maps transport failures, HTTP error statuses and undecodable bodies onto
``NetworkError`` and ``DecodeError``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from signup_consent.core.config import ReconcilerConfig, get_config
from signup_consent.core.errors import DecodeError, NetworkError

logger = structlog.get_logger(__name__)


def create_http_client(config: ReconcilerConfig | None = None, **kwargs: Any) -> httpx.AsyncClient:
    """Build the AsyncClient the reconciler owns when none is injected."""
    config = config or get_config()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.request_timeout_seconds),
        follow_redirects=False,
        headers={"Accept": "application/json"},
        **kwargs,
    )


class ConsentAPIClient:
    """Base class for clients of the location and Fides endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ReconcilerConfig | None = None,
    ) -> None:
        self._http = http_client
        self.config = config or get_config()

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body.

        Returns None for an empty body.

        Raises:
            NetworkError: transport failure or HTTP status >= 400
            DecodeError: body present but not JSON
        """
        try:
            response = await self._http.request(
                method,
                url,
                json=json,
                params=params,
                timeout=self.config.request_timeout_seconds,
            )
        except httpx.HTTPError as e:
            logger.warning("remote_call_failed", method=method, url=url, error=str(e))
            raise NetworkError(f"{method} {url} failed: {e}", url=url) from e

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning(
                "remote_call_rejected",
                method=method,
                url=url,
                status_code=response.status_code,
                detail=detail,
            )
            raise NetworkError(
                f"{method} {url} returned {response.status_code}: {detail}",
                status_code=response.status_code,
                url=url,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"{method} {url} returned a non-JSON body: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and "detail" in payload:
        return str(payload["detail"])
    return str(payload)[:200]
