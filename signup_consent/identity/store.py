"""
Device Identity Store

Owns the ``fides_consent`` record: a stable device id plus the signup
consent flag and record metadata, kept in one persisted text slot as
percent-encoded JSON.

The device id is generated the first time no readable record exists and is
never rewritten afterwards; every later write carries the loaded id
forward.
"""

from __future__ import annotations

import json
from urllib.parse import quote, unquote

import structlog
from pydantic import ValidationError

from signup_consent.core.config import ReconcilerConfig, get_config
from signup_consent.core.errors import DecodeError
from signup_consent.core.models import DeviceIdentityRecord
from signup_consent.identity.storage import KeyValueStore

logger = structlog.get_logger(__name__)


def encode_record(record: DeviceIdentityRecord) -> str:
    """Serialize a record into a cookie-safe string."""
    payload = json.dumps(record.to_wire(), separators=(",", ":"), ensure_ascii=False)
    # safe="" escapes every reserved character, including ';', '=' and ','
    return quote(payload, safe="")


def decode_record(raw: str) -> DeviceIdentityRecord:
    """
    Parse a persisted record.

    Accepts both percent-encoded and bare JSON (older writers stored the
    JSON without encoding it).

    Raises:
        DecodeError: the slot does not hold a usable record
    """
    try:
        text = unquote(raw, errors="strict")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Consent record is not valid percent-encoded UTF-8: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Consent record is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("Consent record must be a JSON object")

    try:
        return DeviceIdentityRecord.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Consent record has an unexpected shape: {e}") from e


class DeviceIdentityStore:
    """Loads, creates and updates the local consent record."""

    def __init__(
        self,
        storage: KeyValueStore,
        config: ReconcilerConfig | None = None,
    ) -> None:
        self._storage = storage
        self._config = config or get_config()

    @property
    def key(self) -> str:
        return self._config.cookie_name

    def load(self) -> DeviceIdentityRecord | None:
        """Return the persisted record, or None if absent or unreadable."""
        raw = self._storage.get(self.key)
        if not raw:
            return None
        try:
            return decode_record(raw)
        except DecodeError as e:
            logger.warning("consent_record_unreadable", key=self.key, error=str(e))
            return None

    def create_default(self) -> DeviceIdentityRecord:
        """Generate a fresh device identity with consent off and persist it."""
        record = DeviceIdentityRecord.new(schema_version=self._config.schema_version)
        self._persist(record)
        logger.info("device_identity_created", device_id=record.device_id)
        return record

    def ensure(self) -> DeviceIdentityRecord:
        """Load the record, creating it only when none is readable."""
        record = self.load()
        if record is not None:
            logger.debug("device_identity_loaded", device_id=record.device_id)
            return record
        return self.create_default()

    def update_consent(self, record: DeviceIdentityRecord, consent: bool) -> DeviceIdentityRecord:
        """
        Set the signup consent flag and bump ``updatedAt``.

        Everything else in the record, including fields this version does not
        know about, is written back as loaded.
        """
        record.consent.advertising_and_email_signup = consent
        record.meta.touch()
        self._persist(record)
        logger.info(
            "device_consent_updated",
            device_id=record.device_id,
            consent=consent,
        )
        return record

    def _persist(self, record: DeviceIdentityRecord) -> None:
        self._storage.set(self.key, encode_record(record), self._config.cookie_max_age_seconds)
