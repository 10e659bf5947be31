"""
Served Recorder

Tells the preference store a notice was displayed and returns the served
reference every later preference must cite.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from signup_consent.clients.base import ConsentAPIClient
from signup_consent.core.errors import DecodeError, ServedRecordMissingError
from signup_consent.core.models import (
    PrivacyExperience,
    PrivacyNotice,
    RegionCode,
    ServedNotice,
    ServedReference,
)

logger = structlog.get_logger(__name__)


class ServedRecorder(ConsentAPIClient):
    """Client for ``PATCH /notices-served``."""

    def build_request_body(
        self,
        experience: PrivacyExperience,
        notice: PrivacyNotice,
        device_id: str,
        region: RegionCode,
    ) -> dict[str, Any]:
        if not notice.privacy_notice_history_id:
            raise DecodeError(f"Notice {notice.notice_key!r} has no privacy_notice_history_id")
        return {
            # Served only; an explicit preference is still expected.
            "acknowledge_mode": False,
            "browser_identity": {"fides_user_device_id": device_id},
            "privacy_experience_id": experience.id,
            "privacy_notice_history_ids": [notice.privacy_notice_history_id],
            "serving_component": self.config.serving_component.value,
            "user_geography": region.geography,
        }

    async def record_served(
        self,
        experience: PrivacyExperience,
        notice: PrivacyNotice,
        device_id: str,
        region: RegionCode,
    ) -> ServedReference:
        """
        Record that ``notice`` was shown to ``device_id``.

        Raises:
            NetworkError: the recorder could not be reached
            DecodeError: the notice or the response is malformed
            ServedRecordMissingError: the recorder acknowledged nothing
        """
        body = self.build_request_body(experience, notice, device_id, region)
        data = await self._request_json(
            "PATCH",
            self.config.api_url("notices-served"),
            json=body,
        )
        if data is None:
            data = []
        if not isinstance(data, list):
            raise DecodeError("notices-served response must be a JSON array")
        if not data:
            raise ServedRecordMissingError(
                f"notices-served returned no record for notice history "
                f"{notice.privacy_notice_history_id}"
            )

        try:
            served = ServedNotice.model_validate(data[0])
        except ValidationError as e:
            raise DecodeError(f"notices-served item has an unexpected shape: {e}") from e

        reference = ServedReference(
            served_notice_history_id=served.served_notice_history_id,
            privacy_notice_history_id=notice.privacy_notice_history_id,
            experience_id=experience.id,
        )
        logger.info(
            "notice_served",
            device_id=device_id,
            experience_id=experience.id,
            privacy_notice_history_id=notice.privacy_notice_history_id,
            served_notice_history_id=reference.served_notice_history_id,
        )
        return reference
