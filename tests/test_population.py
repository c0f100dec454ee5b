"""Tests for zone-population aggregation."""

from __future__ import annotations

import math

import pytest

from impact_sim.city_index import CityIndex
from impact_sim.models import CityRecord, ImpactParameters
from impact_sim.physics import simulate_impactor
from impact_sim.population import populations_by_zone, populations_for_result


def _on_equator(name, distance_km, population):
    """City due east of (0, 0) at an exact great-circle distance."""
    return CityRecord(name=name, lat=0.0, lon=math.degrees(distance_km / 6371.0), population=population)


@pytest.fixture
def ring_cities():
    return [
        _on_equator("Ten", 10, 100),
        _on_equator("Fifty", 50, 200),
        _on_equator("TwoHundred", 200, 300),
    ]


# ── Zone totals tests ────────────────────────────────────────────────────


class TestPopulationsByZone:
    def test_inclusive_zones(self, ring_cities):
        zones = populations_by_zone(0, 0, 20, 100, 250, ring_cities)
        assert zones.crater_pop == 100
        assert zones.blast_pop == 300
        assert zones.thermal_pop == 600
        assert zones.population_affected == 600

    def test_ranked_with_zone_membership(self, ring_cities):
        zones = populations_by_zone(0, 0, 20, 100, 250, ring_cities)
        assert [(c.name, c.zones) for c in zones.cities] == [
            ("TwoHundred", ("thermal",)),
            ("Fifty", ("blast", "thermal")),
            ("Ten", ("crater", "blast", "thermal")),
        ]
        assert zones.cities[2].distance_km == pytest.approx(10.0)

    def test_boundary_is_inside(self, ring_cities):
        zones = populations_by_zone(0, 0, 10.0 + 1e-9, 0, 0, ring_cities)
        assert zones.crater_pop == 100

    def test_radii_not_assumed_nested(self, ring_cities):
        # Thermal smaller than blast: each radius is tested on its own
        zones = populations_by_zone(0, 0, 0, 100, 20, ring_cities)
        assert zones.blast_pop == 300
        assert zones.thermal_pop == 100

    def test_ties_keep_input_order(self):
        cities = [_on_equator("First", 5, 50), _on_equator("Second", 8, 50)]
        zones = populations_by_zone(0, 0, 20, 20, 20, cities)
        assert [c.name for c in zones.cities] == ["First", "Second"]

    def test_unpopulated_cities_skipped(self):
        cities = [_on_equator("Ghost", 1, 0), _on_equator("Unknown", 1, None)]
        zones = populations_by_zone(0, 0, 50, 50, 50, cities)
        assert zones.thermal_pop == 0
        assert zones.cities == ()

    def test_empty_input(self):
        zones = populations_by_zone(0, 0, 50, 50, 50, [])
        assert (zones.crater_pop, zones.blast_pop, zones.thermal_pop) == (0, 0, 0)

    def test_zero_radii(self, ring_cities):
        zones = populations_by_zone(0, 0, 0, 0, 0, ring_cities)
        assert zones.population_affected == 0

    def test_index_matches_full_scan(self, ring_cities):
        far = [CityRecord("Elsewhere", 45.0, 90.0, population=10**6)]
        plain = populations_by_zone(0, 0, 20, 100, 250, ring_cities + far)
        indexed = populations_by_zone(0, 0, 20, 100, 250, CityIndex(ring_cities + far))
        assert plain == indexed


class TestPopulationsForResult:
    def test_uses_result_radii(self, ring_cities):
        result = simulate_impactor(ImpactParameters(300, 3000, 20, 90, lat=0.0, lng=0.0))
        zones = populations_for_result(result, ring_cities)
        expected = populations_by_zone(
            0.0, 0.0, result.crater_km / 2, result.blast_radius_km, result.thermal_radius_km, ring_cities,
        )
        assert zones == expected

    def test_requires_coordinates(self, ring_cities):
        result = simulate_impactor(ImpactParameters(300, 3000, 20, 90), require_location=False)
        with pytest.raises(ValueError):
            populations_for_result(result, ring_cities)
