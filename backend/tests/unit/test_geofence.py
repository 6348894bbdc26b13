"""Unit tests for the geofence evaluator

Tests cover:
- Haversine distance (identity, symmetry, known distances)
- Range verdict against the configured radius
- Coordinate validation (missing, NaN, infinite, out of range)
- Radius validation
"""

import math

import pytest

from siteverify.domain.geofence.evaluator import (
    evaluate,
    haversine_distance,
    validate_coordinate,
    GeofenceResult,
)
from siteverify.domain.verification.errors import InvalidCoordinates, ValidationError


LAGOS = (6.5244, 3.3792)


class TestHaversineDistance:
    """Test great-circle distance"""

    def test_same_point_is_zero(self):
        """Test distance from a point to itself is exactly 0"""
        assert haversine_distance(*LAGOS, *LAGOS) == 0.0
        assert haversine_distance(0.0, 0.0, 0.0, 0.0) == 0.0
        assert haversine_distance(-33.8688, 151.2093, -33.8688, 151.2093) == 0.0

    def test_distance_is_symmetric(self):
        """Test d(p, q) == d(q, p) bit for bit"""
        pairs = [
            (LAGOS, (6.5253, 3.3792)),
            ((9.0765, 7.3986), LAGOS),
            ((51.5074, -0.1278), (40.7128, -74.0060)),
            ((-33.8688, 151.2093), (35.6762, 139.6503)),
        ]
        for p, q in pairs:
            assert haversine_distance(*p, *q) == haversine_distance(*q, *p)

    def test_one_degree_latitude(self):
        """Test one degree of latitude is ~111.19 km on the spherical model"""
        distance = haversine_distance(0.0, 0.0, 1.0, 0.0)
        assert distance == pytest.approx(111_194.9, rel=1e-4)

    def test_antipodal_points(self):
        """Test antipodal distance is half the circumference"""
        distance = haversine_distance(0.0, 0.0, 0.0, 180.0)
        assert distance == pytest.approx(math.pi * 6_371_000.0, rel=1e-9)

    def test_lagos_to_abuja(self):
        """Test a known city-to-city distance (~525 km)"""
        distance = haversine_distance(*LAGOS, 9.0765, 7.3986)
        assert 520_000 < distance < 530_000


class TestEvaluate:
    """Test geofence verdicts"""

    def test_within_range(self):
        """Test a point ~11 m away is within a 100 m radius"""
        result = evaluate(LAGOS[0], LAGOS[1], 6.5245, 3.3792, 100)

        assert isinstance(result, GeofenceResult)
        assert result.within_range is True
        assert result.distance_meters == pytest.approx(11.1, abs=0.5)
        assert result.radius_meters == 100.0

    def test_out_of_range(self):
        """Test a point ~1.1 km away is outside a 100 m radius"""
        result = evaluate(LAGOS[0], LAGOS[1], 6.5344, 3.3792, 100)

        assert result.within_range is False
        assert result.distance_meters == pytest.approx(1112.0, rel=1e-2)

    def test_boundary_is_inclusive(self):
        """Test distance equal to the radius counts as within range"""
        distance = haversine_distance(*LAGOS, 6.5245, 3.3792)
        result = evaluate(LAGOS[0], LAGOS[1], 6.5245, 3.3792, distance)

        assert result.within_range is True

    def test_same_point(self):
        """Test evaluating a point against itself"""
        result = evaluate(*LAGOS, *LAGOS, 1)

        assert result.distance_meters == 0.0
        assert result.within_range is True

    def test_payload_snapshot(self):
        """Test audit payload rounds the distance"""
        payload = evaluate(LAGOS[0], LAGOS[1], 6.5344, 3.3792, 100).to_payload()

        assert set(payload) == {"distance_meters", "radius_meters", "within_range"}
        assert payload["within_range"] is False
        assert payload["radius_meters"] == 100.0

    @pytest.mark.parametrize("radius", [0, -5, float("nan"), float("inf"), None])
    def test_invalid_radius(self, radius):
        """Test radius must be a positive finite number"""
        with pytest.raises(ValidationError):
            evaluate(*LAGOS, *LAGOS, radius)


class TestValidateCoordinate:
    """Test coordinate validation"""

    def test_valid_extremes(self):
        """Test the corners of the coordinate range are accepted"""
        validate_coordinate(90.0, 180.0)
        validate_coordinate(-90.0, -180.0)
        validate_coordinate(0, 0)

    @pytest.mark.parametrize("lat,lng", [
        (None, 3.3792),
        (6.5244, None),
        (float("nan"), 3.3792),
        (6.5244, float("inf")),
        (90.0001, 0.0),
        (-91.0, 0.0),
        (0.0, 180.5),
        (0.0, -181.0),
        ("north", 3.3792),
        (True, 3.3792),
    ])
    def test_invalid_coordinates(self, lat, lng):
        """Test malformed coordinates raise InvalidCoordinates"""
        with pytest.raises(InvalidCoordinates):
            validate_coordinate(lat, lng)

    def test_invalid_coordinates_is_validation_error(self):
        """Test InvalidCoordinates is reported as bad input"""
        with pytest.raises(ValidationError):
            evaluate(None, None, *LAGOS, 100)

    def test_invalid_target_is_rejected(self):
        """Test the document coordinate is validated too"""
        with pytest.raises(InvalidCoordinates, match="target"):
            evaluate(*LAGOS, 95.0, 3.0, 100)
