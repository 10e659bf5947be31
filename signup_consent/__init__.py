"""
Signup Consent

Reconciles a visitor's signup consent between three points of truth: the
``fides_consent`` browser cookie, the region-scoped privacy notice catalog,
and the remote preference store that keeps the audit trail.

Usage:
    from signup_consent import ConsentReconciler, InMemoryKeyValueStore

    async with ConsentReconciler(InMemoryKeyValueStore()) as reconciler:
        if reconciler.can_submit:
            result = await reconciler.submit(consent=True)

Components:
    # Local record
    from signup_consent.identity import DeviceIdentityStore

    # Remote clients
    from signup_consent.clients import (
        RegionResolver,
        NoticeCatalogClient,
        ServedRecorder,
        PreferenceRecorder,
    )

    # HTTP adapter
    from signup_consent.server import create_app
"""

from signup_consent.core.config import ReconcilerConfig, configure, get_config
from signup_consent.core.enums import ReconcilerState, UserConsentPreference
from signup_consent.core.errors import (
    ConsentSyncError,
    DecodeError,
    NetworkError,
    NotApplicable,
    ServedRecordMissingError,
    SubmissionBlockedError,
)
from signup_consent.core.models import (
    DeviceIdentityRecord,
    PreferenceSubmission,
    PrivacyExperience,
    PrivacyNotice,
    ReconcilerSnapshot,
    RegionCode,
    ServedReference,
    SubmissionResult,
)
from signup_consent.identity import (
    CookieJarStore,
    DeviceIdentityStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    RequestCookieStore,
)
from signup_consent.reconciler import ConsentReconciler

__version__ = "0.1.0"

__all__ = [
    # Orchestrator
    "ConsentReconciler",
    "ReconcilerState",
    "ReconcilerSnapshot",
    # Config
    "ReconcilerConfig",
    "get_config",
    "configure",
    # Local record
    "DeviceIdentityStore",
    "DeviceIdentityRecord",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "CookieJarStore",
    "RequestCookieStore",
    # Models
    "RegionCode",
    "PrivacyExperience",
    "PrivacyNotice",
    "ServedReference",
    "PreferenceSubmission",
    "SubmissionResult",
    "UserConsentPreference",
    # Errors
    "ConsentSyncError",
    "NetworkError",
    "DecodeError",
    "NotApplicable",
    "ServedRecordMissingError",
    "SubmissionBlockedError",
]
