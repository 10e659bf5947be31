"""
Signup Consent - Remote Clients

HTTP clients for the geolocation lookup and the Fides privacy API.
"""

from signup_consent.clients.base import ConsentAPIClient, create_http_client
from signup_consent.clients.catalog import NoticeCatalogClient
from signup_consent.clients.preferences import PreferenceRecorder
from signup_consent.clients.region import RegionResolver
from signup_consent.clients.served import ServedRecorder

__all__ = [
    "ConsentAPIClient",
    "create_http_client",
    "RegionResolver",
    "NoticeCatalogClient",
    "ServedRecorder",
    "PreferenceRecorder",
]
