"""
Shared fixtures for the signup consent tests.

Provides a configurable fake of the geolocation and Fides endpoints served
through ``httpx.MockTransport``, sample catalog payloads and ready-made
reconciler collaborators.
"""

from __future__ import annotations

import asyncio
import json
from collections import defaultdict
from typing import Any

import httpx
import pytest
import pytest_asyncio

from signup_consent.core.config import ReconcilerConfig, configure
from signup_consent.identity.storage import InMemoryKeyValueStore
from signup_consent.identity.store import DeviceIdentityStore

from factories import API_BASE_URL, LOCATION_URL, make_experience, make_served

# =============================================================================
# FAKE REMOTE SERVICES
# =============================================================================


class FakeFidesAPI:
    """
    In-process stand-in for the location lookup and the Fides API.

    Responses are plain attributes tests can replace. ``fail`` maps an
    endpoint name to an HTTP status or an exception to raise. ``gate`` makes
    an endpoint wait on an event so tests can interleave calls.
    """

    ENDPOINTS = ("location", "privacy-experience", "notices-served", "privacy-preferences")

    def __init__(self) -> None:
        self.location: Any = {"location": "en-US", "country": "US"}
        self.experience_page: Any = {"items": [make_experience()], "total": 1, "page": 1, "size": 50}
        self.served_response: Any = [make_served()]
        self.preference_response: Any = [{"id": "pref_1"}]
        self.fail: dict[str, int | Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.arrived: dict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self.requests: list[httpx.Request] = []

    def endpoint(self, request: httpx.Request) -> str:
        if request.url.host == "location.test":
            return "location"
        return request.url.path.rsplit("/", 1)[-1]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        name = self.endpoint(request)
        self.arrived[name].set()

        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()

        failure = self.fail.get(name)
        if isinstance(failure, Exception):
            raise failure
        if isinstance(failure, int):
            return httpx.Response(failure, json={"detail": f"{name} unavailable"})

        body = {
            "location": self.location,
            "privacy-experience": self.experience_page,
            "notices-served": self.served_response,
            "privacy-preferences": self.preference_response,
        }[name]
        if isinstance(body, (bytes, str)):
            return httpx.Response(200, content=body)
        return httpx.Response(200, json=body)

    def calls(self, name: str) -> list[httpx.Request]:
        return [r for r in self.requests if self.endpoint(r) == name]

    def json_body(self, name: str, index: int = 0) -> Any:
        return json.loads(self.calls(name)[index].content)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def config() -> ReconcilerConfig:
    """Configuration pointing at the fake services."""
    return ReconcilerConfig(
        location_endpoint=LOCATION_URL,
        api_base_url=API_BASE_URL,
        request_timeout_seconds=5,
    )


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the process-wide config from leaking between tests."""
    configure(None)
    yield
    configure(None)


@pytest.fixture
def fides_api() -> FakeFidesAPI:
    return FakeFidesAPI()


@pytest_asyncio.fixture
async def http_client(fides_api: FakeFidesAPI):
    """AsyncClient whose requests are answered by the fake API."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fides_api.handler)) as client:
        yield client


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def identity_store(storage: InMemoryKeyValueStore, config: ReconcilerConfig) -> DeviceIdentityStore:
    return DeviceIdentityStore(storage, config)
