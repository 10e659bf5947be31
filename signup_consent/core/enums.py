"""
Signup Consent - Enumerations

Shared enumerations for the reconciliation state machine and the values
exchanged with the remote preference store.
"""

from __future__ import annotations

from enum import Enum


class ReconcilerState(str, Enum):
    """
    Progress of a reconciliation session.

    Members are declared in the order the startup chain reaches them.
    """
    UNINITIALIZED = "uninitialized"
    IDENTITY_READY = "identity_ready"
    REGION_RESOLVED = "region_resolved"
    NOTICE_RESOLVED = "notice_resolved"
    SERVED = "served"
    SUBMITTED = "submitted"

    @property
    def accepts_submission(self) -> bool:
        """Only a session holding a served reference may submit."""
        return self in (ReconcilerState.SERVED, ReconcilerState.SUBMITTED)


class UserConsentPreference(str, Enum):
    """Preference values understood by the privacy-preferences endpoint."""
    OPT_IN = "opt_in"
    OPT_OUT = "opt_out"

    @classmethod
    def from_consent(cls, consent: bool) -> UserConsentPreference:
        return cls.OPT_IN if consent else cls.OPT_OUT


class ConsentMethod(str, Enum):
    """How the preference was expressed."""
    BUTTON = "button"
    GPC = "gpc"
    INDIVIDUAL_NOTICE = "individual_notice"
    SAVE = "save"
    DISMISS = "dismiss"


class ServingComponent(str, Enum):
    """UI surface a notice was rendered in."""
    OVERLAY = "overlay"
    BANNER = "banner"
    PRIVACY_CENTER = "privacy_center"
    TCF_OVERLAY = "tcf_overlay"
    TCF_BANNER = "tcf_banner"


class HaltReason(str, Enum):
    """Why the startup chain stopped before reaching ``served``."""
    REGION_UNAVAILABLE = "region_unavailable"
    NO_REGION = "no_region"
    CATALOG_UNAVAILABLE = "catalog_unavailable"
    NO_EXPERIENCE = "no_experience"
    NO_MATCHING_NOTICE = "no_matching_notice"
    SERVED_RECORD_FAILED = "served_record_failed"
