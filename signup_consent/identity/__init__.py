"""
Signup Consent - Device Identity

Local consent record persistence.
"""

from signup_consent.identity.storage import (
    CookieJarStore,
    InMemoryKeyValueStore,
    KeyValueStore,
    PendingCookie,
    RequestCookieStore,
    parse_cookie_header,
)
from signup_consent.identity.store import (
    DeviceIdentityStore,
    decode_record,
    encode_record,
)

__all__ = [
    "DeviceIdentityStore",
    "encode_record",
    "decode_record",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "CookieJarStore",
    "RequestCookieStore",
    "PendingCookie",
    "parse_cookie_header",
]
