"""In-process geocoder backed by a lookup table (development and fixtures)."""

from typing import Mapping, Optional

from ...domain.ports.geocoding_port import GeocodingPort, GeocodeResult, GeocodingError


def _key(address_text: str) -> str:
    return " ".join(address_text.split()).lower()


class StaticGeocoder(GeocodingPort):
    """Resolve addresses from a fixed mapping of address text to result.

    Lookups ignore case and repeated whitespace. Unknown addresses raise
    GeocodingError, which import treats like any geocoder outage.
    """

    def __init__(self, entries: Optional[Mapping[str, GeocodeResult]] = None):
        self._entries = {_key(k): v for k, v in (entries or {}).items()}

    def add(self, address_text: str, result: GeocodeResult) -> None:
        self._entries[_key(address_text)] = result

    def resolve(self, address_text: str) -> GeocodeResult:
        result = self._entries.get(_key(address_text or ""))
        if result is None:
            raise GeocodingError(f"Unknown address '{address_text}'")
        return result
