"""Tests for geodesy helpers and grid keys."""

from __future__ import annotations

import math

import pytest

from impact_sim.geo import (
    EARTH_RADIUS_KM,
    box_keys,
    clamp_coordinates,
    grid_key,
    haversine_km,
    neighbor_keys,
    radius_to_degrees,
)


# ── Haversine tests ──────────────────────────────────────────────────────


class TestHaversine:
    def test_same_point(self):
        assert haversine_km(0, 0, 0, 0) == 0.0

    def test_quarter_circumference(self):
        dist = haversine_km(0, 0, 0, 90)
        assert dist == pytest.approx(10007.5, abs=0.1)

    def test_known_distance(self):
        # New York to London ≈ 5570 km
        dist = haversine_km(40.7128, -74.0060, 51.5074, -0.1278)
        assert 5550 < dist < 5590

    def test_symmetric(self):
        a = haversine_km(48.8566, 2.3522, -33.8688, 151.2093)
        b = haversine_km(-33.8688, 151.2093, 48.8566, 2.3522)
        assert a == pytest.approx(b)

    def test_antipodal_bounded(self):
        dist = haversine_km(90, 0, -90, 0)
        assert dist <= math.pi * EARTH_RADIUS_KM + 1e-9
        assert dist == pytest.approx(math.pi * EARTH_RADIUS_KM)

    def test_never_negative(self):
        assert haversine_km(10, 10, 10.0000001, 10) >= 0


# ── Grid tests ───────────────────────────────────────────────────────────


class TestGrid:
    def test_grid_key_floors(self):
        assert grid_key(12.7, -3.2) == (12, -4)
        assert grid_key(-0.5, 0.5) == (-1, 0)

    def test_neighbor_keys_square(self):
        keys = neighbor_keys(10.5, 20.5, 2)
        assert len(keys) == 25
        assert (8, 18) in keys and (12, 22) in keys

    def test_neighbor_keys_wrap_antimeridian(self):
        keys = neighbor_keys(0.5, 179.5, 1)
        lons = {lo for _, lo in keys}
        assert {178, 179, -180, 180} <= lons

    def test_box_keys_clip_latitude(self):
        keys = box_keys(89.5, 0.5, 2, 1)
        assert max(la for la, _ in keys) == 90

    def test_clamp_coordinates(self):
        assert clamp_coordinates(95, -200) == (90.0, -180.0)
        assert clamp_coordinates(45, 45) == (45, 45)


class TestRadiusToDegrees:
    def test_box_encloses_circle(self):
        dlat, dlon = radius_to_degrees(50.0, 300.0)
        # A point due east at exactly the radius must fall inside the box
        assert haversine_km(50.0, 0.0, 50.0, dlon) >= 300.0 * 0.99
        assert dlat == pytest.approx(math.degrees(300.0 / EARTH_RADIUS_KM), rel=1e-3)

    def test_reaching_pole(self):
        assert radius_to_degrees(85.0, 1000.0) is None

    def test_huge_radius(self):
        assert radius_to_degrees(0.0, 30000.0) is None
