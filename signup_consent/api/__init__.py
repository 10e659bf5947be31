"""
Signup Consent - HTTP API

FastAPI router exposing consent sessions to the signup form.
"""

from signup_consent.api.routes import SubmitPreferenceRequest, router
from signup_consent.api.sessions import ConsentSession, SessionRegistry

__all__ = [
    "router",
    "SubmitPreferenceRequest",
    "ConsentSession",
    "SessionRegistry",
]
