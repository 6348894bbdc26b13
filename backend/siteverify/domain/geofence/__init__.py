"""Geofence domain module - distance-from-target enforcement"""

from .evaluator import (
    GeofenceResult,
    evaluate,
    haversine_distance,
    validate_coordinate,
    EARTH_RADIUS_METERS,
    DEFAULT_RADIUS_METERS,
)

__all__ = [
    "GeofenceResult",
    "evaluate",
    "haversine_distance",
    "validate_coordinate",
    "EARTH_RADIUS_METERS",
    "DEFAULT_RADIUS_METERS",
]
