"""Geocoding adapters"""

from .nominatim_geocoder import NominatimGeocoder
from .static_geocoder import StaticGeocoder

__all__ = ["NominatimGeocoder", "StaticGeocoder"]
