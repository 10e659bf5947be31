"""
Region Resolver

Maps the network-observed location of the caller onto the geography tag
and country code the catalog and recorders expect.
"""

from __future__ import annotations

import structlog

from signup_consent.clients.base import ConsentAPIClient
from signup_consent.core.errors import DecodeError
from signup_consent.core.models import RegionCode

logger = structlog.get_logger(__name__)


class RegionResolver(ConsentAPIClient):
    """One geolocation lookup per reconciliation run."""

    async def resolve(self) -> RegionCode | None:
        """
        Look up the caller's region.

        Returns:
            The RegionCode, or None when the lookup carries no country
            (there is no applicable region; this is not a failure).

        Raises:
            NetworkError: the lookup could not be performed
            DecodeError: the lookup answered with something other than an object
        """
        data = await self._request_json("GET", self.config.location_endpoint)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DecodeError("Location response must be a JSON object")

        country = data.get("country")
        if not isinstance(country, str) or not country.strip():
            logger.info("region_not_applicable", location=data.get("location"))
            return None

        location = data.get("location")
        if not isinstance(location, str) or not location.strip():
            location = None

        region = RegionCode.from_lookup(location, country.strip())
        logger.info(
            "region_resolved",
            geography=region.geography,
            country=region.country,
        )
        return region
