"""
Signup Consent - Core

Configuration, enumerations, errors and data models shared by every
component of the reconciliation engine.
"""

from signup_consent.core.config import ReconcilerConfig, configure, get_config
from signup_consent.core.enums import (
    ConsentMethod,
    HaltReason,
    ReconcilerState,
    ServingComponent,
    UserConsentPreference,
)
from signup_consent.core.errors import (
    ConsentSyncError,
    DecodeError,
    NetworkError,
    NotApplicable,
    ServedRecordMissingError,
    SubmissionBlockedError,
)
from signup_consent.core.models import (
    ConsentFlags,
    DeviceIdentity,
    DeviceIdentityRecord,
    PreferenceSubmission,
    PrivacyExperience,
    PrivacyNotice,
    ReconcilerSnapshot,
    RecordMeta,
    RegionCode,
    ServedNotice,
    ServedReference,
    SubmissionResult,
)

__all__ = [
    # Config
    "ReconcilerConfig",
    "get_config",
    "configure",
    # Enums
    "ReconcilerState",
    "UserConsentPreference",
    "ConsentMethod",
    "ServingComponent",
    "HaltReason",
    # Errors
    "ConsentSyncError",
    "NetworkError",
    "DecodeError",
    "NotApplicable",
    "ServedRecordMissingError",
    "SubmissionBlockedError",
    # Models
    "DeviceIdentityRecord",
    "ConsentFlags",
    "DeviceIdentity",
    "RecordMeta",
    "RegionCode",
    "PrivacyNotice",
    "PrivacyExperience",
    "ServedNotice",
    "ServedReference",
    "PreferenceSubmission",
    "SubmissionResult",
    "ReconcilerSnapshot",
]
