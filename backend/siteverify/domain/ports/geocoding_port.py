"""Geocoding Port - Domain interface for address resolution.

Adapters turn free-text addresses into coordinates. The workflow only
depends on this contract; the geocoding engine itself is external.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeocodeResult:
    """Resolved location for an address.

    Attributes:
        latitude: WGS84 latitude
        longitude: WGS84 longitude
        region: Jurisdiction key for the address (None if the service has none)
    """
    latitude: float
    longitude: float
    region: Optional[str] = None


class GeocodingError(Exception):
    """Raised by adapters when an address cannot be resolved."""
    pass


class GeocodingPort(ABC):
    """Port interface for geocoding services.

    Implementations raise GeocodingError (or any exception) on failure.
    Timeouts are enforced by the caller, not by the adapter.
    """

    @abstractmethod
    def resolve(self, address_text: str) -> GeocodeResult:
        """Resolve a free-text address.

        Args:
            address_text: Single-line address ("street, city, state, country")

        Returns:
            GeocodeResult with coordinates

        Raises:
            GeocodingError: If the address cannot be resolved
        """
        pass
