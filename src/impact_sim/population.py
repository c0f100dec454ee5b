"""Zone-population aggregation: which populated cities fall inside which ring."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Union

from impact_sim.city_index import CityIndex
from impact_sim.geo import haversine_km
from impact_sim.models import (
    ZONE_BLAST,
    ZONE_CRATER,
    ZONE_THERMAL,
    AffectedCity,
    CityRecord,
    SimulationResult,
    ZonePopulation,
)

logger = logging.getLogger(__name__)

Cities = Union[CityIndex, Iterable[CityRecord]]


def populations_by_zone(
    center_lat: float,
    center_lon: float,
    crater_radius_km: float,
    blast_km: float,
    thermal_km: float,
    cities: Cities,
) -> ZonePopulation:
    """Accumulate population per zone and rank the affected cities.

    Each radius is tested independently (no ordering between them is
    assumed), so a city can count toward several zone totals. Cities
    without a positive population are skipped. The ranked list is sorted
    by population, largest first; ties keep the input order.

    A CityIndex is narrowed to the grid cells around the largest radius
    first; any other iterable is scanned in full.
    """
    if isinstance(cities, CityIndex):
        reach = max(crater_radius_km, blast_km, thermal_km)
        if math.isnan(reach):
            candidates: Iterable[CityRecord] = cities
        else:
            candidates = cities.candidates_within(center_lat, center_lon, reach)
    else:
        candidates = cities

    crater_pop = blast_pop = thermal_pop = 0
    affected: list[AffectedCity] = []
    scanned = 0

    for city in candidates:
        pop = city.effective_population
        if pop <= 0:
            continue
        scanned += 1
        dist = haversine_km(center_lat, center_lon, city.lat, city.lon)

        zones: list[str] = []
        if dist <= crater_radius_km:
            crater_pop += pop
            zones.append(ZONE_CRATER)
        if dist <= blast_km:
            blast_pop += pop
            zones.append(ZONE_BLAST)
        if dist <= thermal_km:
            thermal_pop += pop
            zones.append(ZONE_THERMAL)

        if zones:
            affected.append(AffectedCity(
                name=city.name,
                country=city.country,
                population=pop,
                distance_km=dist,
                zones=tuple(zones),
            ))

    affected.sort(key=lambda c: -c.population)
    logger.debug(
        "Zone scan at (%.4f, %.4f): %d populated cities checked, %d affected",
        center_lat, center_lon, scanned, len(affected),
    )

    return ZonePopulation(
        crater_pop=crater_pop,
        blast_pop=blast_pop,
        thermal_pop=thermal_pop,
        cities=tuple(affected),
    )


def populations_for_result(result: SimulationResult, cities: Cities) -> ZonePopulation:
    """Zone populations around a result's target using its radii."""
    if result.latitude is None or result.longitude is None:
        raise ValueError("SimulationResult has no target coordinates")
    return populations_by_zone(
        result.latitude,
        result.longitude,
        result.crater_radius_km,
        result.blast_radius_km,
        result.thermal_radius_km,
        cities,
    )
