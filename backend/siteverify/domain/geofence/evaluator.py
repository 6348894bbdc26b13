"""Geofence evaluation - great-circle distance and range verdict.

Pure functions, no I/O. Callers must evaluate the geofence, and get a
passing verdict, before attempting any write it gates.
"""

import math
from dataclasses import dataclass
from typing import Optional

from ..verification.errors import InvalidCoordinates, ValidationError

EARTH_RADIUS_METERS = 6_371_000.0

DEFAULT_RADIUS_METERS = 100.0


@dataclass(frozen=True)
class GeofenceResult:
    """Outcome of a geofence check.

    Attributes:
        distance_meters: Haversine distance between actor and target
        within_range: True if distance_meters <= radius
        radius_meters: Radius the verdict was computed against
    """
    distance_meters: float
    within_range: bool
    radius_meters: float

    def to_payload(self) -> dict:
        """Audit payload snapshot."""
        return {
            "distance_meters": round(self.distance_meters, 3),
            "radius_meters": self.radius_meters,
            "within_range": self.within_range,
        }


def validate_coordinate(lat: Optional[float], lng: Optional[float], label: str = "point") -> None:
    """Raise InvalidCoordinates unless (lat, lng) is a finite, in-range pair."""
    for name, value in (("latitude", lat), ("longitude", lng)):
        if value is None or isinstance(value, bool):
            raise InvalidCoordinates(f"{label} {name} is missing")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidCoordinates(f"{label} {name} {value!r} is not a number")
        if not math.isfinite(number):
            raise InvalidCoordinates(f"{label} {name} {value!r} is not finite")

    if not -90.0 <= float(lat) <= 90.0:
        raise InvalidCoordinates(f"{label} latitude {lat} is outside [-90, 90]")
    if not -180.0 <= float(lng) <= 180.0:
        raise InvalidCoordinates(f"{label} longitude {lng} is outside [-180, 180]")


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters on a spherical Earth.

    Coordinate deltas are taken as absolute values so the result is exactly
    symmetric in its two points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = abs(phi2 - phi1)
    d_lambda = abs(math.radians(lng2) - math.radians(lng1))

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Clamp for floating point drift on antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def evaluate(
    actor_lat: float,
    actor_lng: float,
    target_lat: float,
    target_lng: float,
    radius_meters: float = DEFAULT_RADIUS_METERS,
) -> GeofenceResult:
    """Evaluate whether an actor stands within radius_meters of a target.

    Args:
        actor_lat: Actor's live latitude
        actor_lng: Actor's live longitude
        target_lat: Document's resolved latitude
        target_lng: Document's resolved longitude
        radius_meters: Configured geofence radius (never request input)

    Returns:
        GeofenceResult with distance and verdict

    Raises:
        InvalidCoordinates: If either point is missing or out of range
        ValidationError: If radius is not a positive finite number

    Example:
        >>> evaluate(6.5244, 3.3792, 6.5244, 3.3793, 100).within_range
        True
    """
    validate_coordinate(actor_lat, actor_lng, label="actor")
    validate_coordinate(target_lat, target_lng, label="target")

    if radius_meters is None or not math.isfinite(radius_meters) or radius_meters <= 0:
        raise ValidationError(f"Geofence radius must be a positive number, got {radius_meters!r}")

    distance = haversine_distance(
        float(actor_lat), float(actor_lng), float(target_lat), float(target_lng)
    )
    return GeofenceResult(
        distance_meters=distance,
        within_range=distance <= radius_meters,
        radius_meters=float(radius_meters),
    )
