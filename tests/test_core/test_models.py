"""
Tests for signup_consent.core models and enums.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from signup_consent.core.enums import ReconcilerState, UserConsentPreference
from signup_consent.core.models import (
    DeviceIdentityRecord,
    PreferenceSubmission,
    PrivacyNotice,
    ReconcilerSnapshot,
    RegionCode,
    ServedReference,
    SubmissionResult,
    format_timestamp,
    normalize_geography,
    utc_now,
)


def make_submission(preference: UserConsentPreference = UserConsentPreference.OPT_IN) -> PreferenceSubmission:
    return PreferenceSubmission(
        device_id="dev-1",
        privacy_notice_history_id="pri_hist_1",
        preference=preference,
        served_notice_history_id="ser_1",
        privacy_experience_id="pri_exp_us",
        user_geography="en_us",
    )


class TestReconcilerState:
    """Tests for the state enum."""

    def test_only_served_states_accept_submission(self):
        accepting = {s for s in ReconcilerState if s.accepts_submission}
        assert accepting == {ReconcilerState.SERVED, ReconcilerState.SUBMITTED}

    def test_values_are_snake_case(self):
        assert ReconcilerState.NOTICE_RESOLVED.value == "notice_resolved"


class TestUserConsentPreference:
    """Tests for mapping the checkbox onto preference values."""

    def test_from_consent(self):
        assert UserConsentPreference.from_consent(True) is UserConsentPreference.OPT_IN
        assert UserConsentPreference.from_consent(False) is UserConsentPreference.OPT_OUT


class TestTimestamps:
    """Tests for cookie timestamp formatting."""

    def test_format_matches_iso_string_with_millis(self):
        value = datetime(2023, 10, 18, 9, 30, 5, 123456, tzinfo=UTC)
        assert format_timestamp(value) == "2023-10-18T09:30:05.123Z"

    def test_naive_timestamp_treated_as_utc(self):
        value = datetime(2023, 1, 2, 3, 4, 5)
        assert format_timestamp(value) == "2023-01-02T03:04:05.000Z"

    def test_utc_now_is_millisecond_precise(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.microsecond % 1000 == 0


class TestDeviceIdentityRecord:
    """Tests for the local consent record model."""

    def test_new_record_defaults(self):
        record = DeviceIdentityRecord.new(schema_version="0.9.0")

        assert record.device_id
        assert record.consented is False
        assert record.meta.schema_version == "0.9.0"
        assert record.meta.created_at == record.meta.updated_at

    def test_new_records_get_distinct_device_ids(self):
        first = DeviceIdentityRecord.new(schema_version="0.9.0")
        second = DeviceIdentityRecord.new(schema_version="0.9.0")
        assert first.device_id != second.device_id

    def test_wire_format_uses_cookie_key_names(self):
        record = DeviceIdentityRecord.new(schema_version="0.9.0")
        wire = record.to_wire()

        assert set(wire) == {"consent", "identity", "fides_meta"}
        assert wire["consent"] == {"advertising_and_email_signup": False}
        assert wire["identity"] == {"fides_user_device_id": record.device_id}
        assert wire["fides_meta"]["version"] == "0.9.0"
        assert wire["fides_meta"]["createdAt"].endswith("Z")
        assert wire["fides_meta"]["updatedAt"].endswith("Z")

    def test_unknown_fields_survive_round_trip(self):
        data = {
            "consent": {"advertising_and_email_signup": True, "analytics": False},
            "identity": {"fides_user_device_id": "dev-1", "email": "a@example.com"},
            "fides_meta": {
                "version": "0.9.0",
                "createdAt": "2023-10-18T09:30:05.123Z",
                "updatedAt": "2023-10-18T09:30:05.123Z",
            },
            "tcf_consent": {"purposes": [1, 2]},
        }
        record = DeviceIdentityRecord.model_validate(data)

        assert record.to_wire() == data

    def test_empty_device_id_rejected(self):
        with pytest.raises(ValidationError):
            DeviceIdentityRecord.model_validate({"identity": {"fides_user_device_id": "  "}})

    def test_missing_identity_rejected(self):
        with pytest.raises(ValidationError):
            DeviceIdentityRecord.model_validate({"consent": {}})


class TestRegionCode:
    """Tests for geography normalization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("en-US", "en_us"),
            ("US-CA", "us_ca"),
            (" fr ", "fr"),
            ("a-b-c", "a_b_c"),
        ],
    )
    def test_normalize_geography(self, raw, expected):
        assert normalize_geography(raw) == expected

    def test_from_lookup(self):
        region = RegionCode.from_lookup("en-US", "US")
        assert region.geography == "en_us"
        assert region.country == "US"
        assert region.catalog_region == "us"

    def test_missing_location_falls_back_to_country(self):
        region = RegionCode.from_lookup(None, "DE")
        assert region.geography == "de"
        assert region.catalog_region == "de"

    def test_frozen(self):
        region = RegionCode.from_lookup("en-US", "US")
        with pytest.raises(ValidationError):
            region.country = "FR"


class TestPreferenceSubmission:
    """Tests for the preference audit record."""

    def test_request_body_shape(self):
        body = make_submission().to_request_body()

        assert body == {
            "browser_identity": {"fides_user_device_id": "dev-1"},
            "preferences": [
                {
                    "privacy_notice_history_id": "pri_hist_1",
                    "preference": "opt_in",
                    "served_notice_history_id": "ser_1",
                }
            ],
            "privacy_experience_id": "pri_exp_us",
            "user_geography": "en_us",
            "method": "button",
        }

    def test_consented(self):
        assert make_submission(UserConsentPreference.OPT_IN).consented is True
        assert make_submission(UserConsentPreference.OPT_OUT).consented is False

    def test_result_ok_tracks_remote_write(self):
        submission = make_submission()
        assert SubmissionResult(submission=submission, remote_recorded=True, local_saved=False).ok
        assert not SubmissionResult(submission=submission, remote_recorded=False, local_saved=True).ok


class TestReconcilerSnapshot:
    """Tests for the published snapshot."""

    @pytest.fixture
    def served(self):
        return ServedReference(
            served_notice_history_id="ser_1",
            privacy_notice_history_id="pri_hist_1",
            experience_id="pri_exp_us",
        )

    def test_initial_snapshot(self):
        snapshot = ReconcilerSnapshot()
        assert snapshot.state is ReconcilerState.UNINITIALIZED
        assert snapshot.can_submit is False
        assert snapshot.notice_label is None

    def test_can_submit_when_served(self, served):
        snapshot = ReconcilerSnapshot(state=ReconcilerState.SERVED, served=served)
        assert snapshot.can_submit is True

    @pytest.mark.parametrize(
        "changes",
        [
            {"submitting": True},
            {"closed": True},
            {"served": None},
            {"state": ReconcilerState.NOTICE_RESOLVED},
        ],
    )
    def test_cannot_submit(self, served, changes):
        snapshot = ReconcilerSnapshot(state=ReconcilerState.SERVED, served=served)
        assert snapshot.model_copy(update=changes).can_submit is False

    def test_notice_label_is_notice_description(self):
        notice = PrivacyNotice(notice_key="email_signup", description="Email me offers")
        snapshot = ReconcilerSnapshot(notice=notice)
        assert snapshot.notice_label == "Email me offers"

    def test_to_public(self, served):
        snapshot = ReconcilerSnapshot(
            state=ReconcilerState.SERVED,
            device_id="dev-1",
            served=served,
            notice=PrivacyNotice(notice_key="email_signup", description="Email me offers"),
        )
        data = snapshot.to_public()

        assert data["state"] == "served"
        assert data["can_submit"] is True
        assert data["notice_label"] == "Email me offers"
        assert data["served"]["served_notice_history_id"] == "ser_1"
