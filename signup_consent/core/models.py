"""
Signup Consent - Data Models

Pydantic models for the local consent record, the privacy experience
catalog, the served/preference audit records and the snapshots the
reconciler publishes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from signup_consent.core.enums import (
    ConsentMethod,
    ReconcilerState,
    UserConsentPreference,
)


def utc_now() -> datetime:
    """Current time, truncated to the millisecond precision the cookie keeps."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way ``Date.prototype.toISOString`` does."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def current_timestamp() -> str:
    return format_timestamp(utc_now())


class RecordSection(BaseModel):
    """Base for every part of the persisted record; unknown keys survive."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# ═══════════════════════════════════════════════════════════════════════════
# LOCAL CONSENT RECORD
# ═══════════════════════════════════════════════════════════════════════════


class ConsentFlags(RecordSection):
    advertising_and_email_signup: bool = False


class DeviceIdentity(RecordSection):
    device_id: str = Field(alias="fides_user_device_id")

    @field_validator("device_id")
    @classmethod
    def validate_device_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("device id must not be empty")
        return v


class RecordMeta(RecordSection):
    """
    Record metadata.

    Timestamps stay the strings read from the cookie, so rewriting a record
    leaves ``createdAt`` exactly as it was stored.
    """

    schema_version: str = Field(default="0.9.0", alias="version")
    created_at: str = Field(default_factory=current_timestamp, alias="createdAt")
    updated_at: str = Field(default_factory=current_timestamp, alias="updatedAt")

    def touch(self) -> None:
        self.updated_at = current_timestamp()


class DeviceIdentityRecord(RecordSection):
    """
    The ``fides_consent`` cookie payload.

    ``identity.device_id`` is generated once per device and never changes;
    ``consent`` and ``meta.updated_at`` change on every submission.
    """

    consent: ConsentFlags = Field(default_factory=ConsentFlags)
    identity: DeviceIdentity
    meta: RecordMeta = Field(default_factory=RecordMeta, alias="fides_meta")

    @classmethod
    def new(cls, schema_version: str) -> DeviceIdentityRecord:
        now = current_timestamp()
        return cls(
            consent=ConsentFlags(advertising_and_email_signup=False),
            identity=DeviceIdentity(device_id=str(uuid4())),
            meta=RecordMeta(schema_version=schema_version, created_at=now, updated_at=now),
        )

    @property
    def device_id(self) -> str:
        return self.identity.device_id

    @property
    def consented(self) -> bool:
        return self.consent.advertising_and_email_signup

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using the cookie's own key names."""
        return self.model_dump(mode="json", by_alias=True)


# ═══════════════════════════════════════════════════════════════════════════
# REGION
# ═══════════════════════════════════════════════════════════════════════════


class RegionCode(BaseModel):
    """Geography derived from one geolocation lookup. Never persisted."""

    model_config = ConfigDict(frozen=True)

    geography: str
    country: str

    @classmethod
    def from_lookup(cls, location: str | None, country: str) -> RegionCode:
        source = location or country
        return cls(geography=normalize_geography(source), country=country)

    @property
    def catalog_region(self) -> str:
        """Value of the catalog's ``region`` query parameter."""
        return self.country.lower()


def normalize_geography(value: str) -> str:
    """``"en-US"`` -> ``"en_us"``."""
    return value.strip().lower().replace("-", "_")


# ═══════════════════════════════════════════════════════════════════════════
# PRIVACY EXPERIENCE CATALOG
# ═══════════════════════════════════════════════════════════════════════════


class WireModel(BaseModel):
    """Remote payloads; fields this flow does not use are kept, not rejected."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PrivacyNotice(WireModel):
    """
    A versioned privacy notice variant inside an experience.

    Only the key, history id and description drive the flow; the remaining
    catalog fields are carried as received.
    """

    id: str | None = None
    privacy_notice_history_id: str | None = None
    notice_key: str | None = None
    description: str | None = None
    name: Any = None
    regions: Any = None
    consent_mechanism: Any = None
    data_uses: Any = None
    enforcement_level: Any = None
    disabled: Any = None
    displayed_in_overlay: Any = None
    version: Any = None
    cookies: Any = None
    default_preference: Any = None
    current_preference: Any = None
    outdated_preference: Any = None
    current_served: Any = None
    outdated_served: Any = None


class PrivacyExperience(WireModel):
    """Region-scoped bundle of notices."""

    id: str
    region: Any = None
    component: Any = None
    show_banner: Any = None
    experience_config: Any = None
    privacy_notices: list[PrivacyNotice] = Field(default_factory=list)

    @field_validator("privacy_notices", mode="before")
    @classmethod
    def default_notices(cls, v: Any) -> Any:
        return [] if v is None else v


# ═══════════════════════════════════════════════════════════════════════════
# SERVED / PREFERENCE AUDIT RECORDS
# ═══════════════════════════════════════════════════════════════════════════


class ServedNotice(WireModel):
    """One element of the notices-served response."""

    served_notice_history_id: str
    id: str | None = None
    updated_at: str | None = None
    privacy_notice_history: dict[str, Any] | None = None


class ServedReference(BaseModel):
    """Proof that a notice-history version was shown this session."""

    model_config = ConfigDict(frozen=True)

    served_notice_history_id: str
    privacy_notice_history_id: str
    experience_id: str
    served_at: datetime = Field(default_factory=utc_now)


class PreferenceSubmission(BaseModel):
    """Audit record sent to the privacy-preferences endpoint."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    device_id: str
    privacy_notice_history_id: str
    preference: UserConsentPreference
    served_notice_history_id: str
    privacy_experience_id: str
    user_geography: str
    method: str = ConsentMethod.BUTTON.value

    @property
    def consented(self) -> bool:
        return self.preference == UserConsentPreference.OPT_IN.value

    def to_request_body(self) -> dict[str, Any]:
        return {
            "browser_identity": {"fides_user_device_id": self.device_id},
            "preferences": [
                {
                    "privacy_notice_history_id": self.privacy_notice_history_id,
                    "preference": self.preference,
                    "served_notice_history_id": self.served_notice_history_id,
                }
            ],
            "privacy_experience_id": self.privacy_experience_id,
            "user_geography": self.user_geography,
            "method": self.method,
        }


class SubmissionResult(BaseModel):
    """Outcome of one ``submit()``."""

    model_config = ConfigDict(frozen=True)

    submission: PreferenceSubmission
    remote_recorded: bool
    local_saved: bool
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.remote_recorded


# ═══════════════════════════════════════════════════════════════════════════
# SNAPSHOT
# ═══════════════════════════════════════════════════════════════════════════


class ReconcilerSnapshot(BaseModel):
    """Immutable view of the reconciler, published on every transition."""

    model_config = ConfigDict(frozen=True)

    state: ReconcilerState = ReconcilerState.UNINITIALIZED
    device_id: str | None = None
    consent: bool = False
    region: RegionCode | None = None
    experience_id: str | None = None
    notice: PrivacyNotice | None = None
    served: ServedReference | None = None
    submitting: bool = False
    closed: bool = False
    halt_reason: str | None = None
    last_error: str | None = None
    last_submission: PreferenceSubmission | None = None

    @property
    def notice_label(self) -> str | None:
        """Checkbox label for the presentation layer."""
        return self.notice.description if self.notice else None

    @property
    def can_submit(self) -> bool:
        return (
            self.state.accepts_submission
            and self.served is not None
            and not self.submitting
            and not self.closed
        )

    def to_public(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["notice_label"] = self.notice_label
        data["can_submit"] = self.can_submit
        return data
