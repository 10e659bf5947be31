"""
Notice Catalog Client

Fetches the privacy experience for a region and picks the single notice
the signup flow governs.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from signup_consent.clients.base import ConsentAPIClient
from signup_consent.core.errors import DecodeError
from signup_consent.core.models import PrivacyExperience, PrivacyNotice

logger = structlog.get_logger(__name__)


class NoticeCatalogClient(ConsentAPIClient):
    """Client for ``GET /privacy-experience``."""

    async def fetch_experience(self, region: str) -> PrivacyExperience | None:
        """
        Fetch the experience applicable to ``region``.

        Only page 1 is requested and only its first item is used; an empty
        page yields None.

        Raises:
            NetworkError: the catalog could not be reached or rejected the query
            DecodeError: the catalog answered with an unexpected payload
        """
        params = {
            "show_disabled": "true",
            "region": region,
            "systems_applicable": "false",
            "page": 1,
            "size": self.config.experience_page_size,
        }
        data = await self._request_json(
            "GET",
            self.config.api_url("privacy-experience"),
            params=params,
        )
        if not isinstance(data, dict):
            raise DecodeError("Privacy experience response must be a JSON object")

        items = data.get("items") or []
        if not isinstance(items, list):
            raise DecodeError("Privacy experience page items must be a JSON array")
        if not items:
            logger.info("experience_not_found", region=region)
            return None

        # Only the first item is validated.
        try:
            experience = PrivacyExperience.model_validate(items[0])
        except ValidationError as e:
            raise DecodeError(f"Privacy experience has an unexpected shape: {e}") from e

        if len(items) > 1:
            logger.debug(
                "experience_page_truncated",
                region=region,
                items=len(items),
                selected=experience.id,
            )
        logger.info(
            "experience_fetched",
            region=region,
            experience_id=experience.id,
            notices=len(experience.privacy_notices),
        )
        return experience

    def select_notice(self, experience: PrivacyExperience) -> PrivacyNotice | None:
        """Return the first notice whose key ends with the flow suffix."""
        suffix = self.config.notice_key_suffix
        for notice in experience.privacy_notices:
            if notice.notice_key and notice.notice_key.endswith(suffix):
                return notice
        logger.info(
            "notice_not_applicable",
            experience_id=experience.id,
            suffix=suffix,
        )
        return None
