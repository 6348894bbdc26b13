"""Nominatim geocoding adapter - GeocodingPort over the OSM search API."""

import logging
from typing import Optional

import requests

from ...domain.ports.geocoding_port import GeocodingPort, GeocodeResult, GeocodingError

logger = logging.getLogger(__name__)


class NominatimGeocoder(GeocodingPort):
    """Resolve addresses with a Nominatim-compatible /search endpoint.

    The region is taken from the "state" component of the address details
    and falls back to the county or city when the service has no state.

    Example:
        geocoder = NominatimGeocoder("https://nominatim.openstreetmap.org",
                                     user_agent="siteverify/0.1")
        result = geocoder.resolve("12 Marina Road, Lagos Island, Lagos, Nigeria")
    """

    def __init__(self, base_url: str, user_agent: str, request_timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def resolve(self, address_text: str) -> GeocodeResult:
        if not address_text or not address_text.strip():
            raise GeocodingError("Address is empty")

        try:
            response = self.session.get(
                f"{self.base_url}/search",
                params={"q": address_text, "format": "jsonv2", "limit": 1, "addressdetails": 1},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            results = response.json()
        except requests.RequestException as e:
            raise GeocodingError(f"Geocoding request failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Geocoding response is not JSON: {e}") from e

        if not results:
            raise GeocodingError(f"No match for address '{address_text}'")

        best = results[0]
        try:
            latitude = float(best["lat"])
            longitude = float(best["lon"])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(f"Malformed geocoding result: {e}") from e

        region = self._region_from(best.get("address") or {})
        logger.debug(f"Geocoded '{address_text}' -> ({latitude}, {longitude}) region={region}")
        return GeocodeResult(latitude=latitude, longitude=longitude, region=region)

    @staticmethod
    def _region_from(details: dict) -> Optional[str]:
        for key in ("state", "county", "city"):
            if details.get(key):
                return details[key]
        return None
