"""
Preference Recorder

Sends the final opt-in/opt-out decision to the preference store.
"""

from __future__ import annotations

from typing import Any

import structlog

from signup_consent.clients.base import ConsentAPIClient
from signup_consent.core.models import PreferenceSubmission

logger = structlog.get_logger(__name__)


class PreferenceRecorder(ConsentAPIClient):
    """Client for ``PATCH /privacy-preferences``."""

    async def save(self, submission: PreferenceSubmission) -> Any:
        """
        Record one preference.

        Returns the decoded response body (None when empty).

        Raises:
            NetworkError: the preference store could not be reached or rejected it
            DecodeError: the response body is not JSON
        """
        data = await self._request_json(
            "PATCH",
            self.config.api_url("privacy-preferences"),
            json=submission.to_request_body(),
        )
        logger.info(
            "preference_recorded",
            device_id=submission.device_id,
            preference=submission.preference,
            served_notice_history_id=submission.served_notice_history_id,
        )
        return data
