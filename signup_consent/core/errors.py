"""
Signup Consent - Errors

Exception hierarchy shared by the identity store, the remote clients and the
reconciler.
"""

from __future__ import annotations


class ConsentSyncError(Exception):
    """Base exception for consent reconciliation errors."""
    pass


class NetworkError(ConsentSyncError):
    """Raised when a remote call fails at the transport or HTTP level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class DecodeError(ConsentSyncError):
    """Raised when a payload or persisted record cannot be decoded."""
    pass


class NotApplicable(ConsentSyncError):
    """
    Legitimate empty result: no region, no experience, or no notice for
    this flow. Never retried.
    """
    pass


class ServedRecordMissingError(ConsentSyncError):
    """Raised when the served recorder acknowledges nothing."""
    pass


class SubmissionBlockedError(ConsentSyncError):
    """Raised when a preference is submitted without a served reference."""
    pass
