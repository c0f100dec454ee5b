"""Orchestration: physics result + population zones for one impact."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from impact_sim.city_index import CityIndex
from impact_sim.diagnostics import DiagnosticObserver, log_diagnostic
from impact_sim.loader import CityDatasetLoader
from impact_sim.models import (
    CityRecord,
    DamageZone,
    ImpactParameters,
    SimulationResult,
    ZonePopulation,
)
from impact_sim.physics import DEFAULT_CONFIG, PhysicsConfig, generate_damage_zones, simulate_impactor
from impact_sim.population import populations_for_result

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 10


class ImpactSimulator:
    """Runs simulations against an injected city index or loader.

    With neither (or with an empty dataset) the physics still runs and the
    population fields come back as zeros.
    """

    def __init__(
        self,
        index: Optional[CityIndex] = None,
        loader: Optional[CityDatasetLoader] = None,
        config: PhysicsConfig = DEFAULT_CONFIG,
        observer: DiagnosticObserver = log_diagnostic,
        top_n: int = DEFAULT_TOP_N,
    ):
        self._index = index
        self.loader = loader
        self.config = config
        self.observer = observer
        self.top_n = top_n

    @property
    def index(self) -> Optional[CityIndex]:
        if self._index is not None:
            return self._index
        return self.loader.index if self.loader is not None else None

    def simulate(self, params: ImpactParameters) -> SimulationResult:
        """Physics plus population, using whatever index is available now."""
        result = simulate_impactor(params, self.config, self.observer)
        return self.apply_population(result)

    async def simulate_async(self, params: ImpactParameters) -> SimulationResult:
        """Like simulate(), loading the dataset first if a loader was given.

        Parameters are validated before any loading happens.
        """
        result = simulate_impactor(params, self.config, self.observer)
        if self._index is None and self.loader is not None:
            await self.loader.load()
        return self.apply_population(result)

    def apply_population(self, result: SimulationResult) -> SimulationResult:
        return result.with_population(self.zone_populations(result), self.top_n)

    def zone_populations(self, result: SimulationResult) -> ZonePopulation:
        index = self.index
        if index is None or len(index) == 0:
            logger.debug("No city data loaded; population totals are zero")
            return ZonePopulation()
        return populations_for_result(result, index)

    def damage_zones(self, result: SimulationResult, shockwave_scale: float = 1.0) -> list[DamageZone]:
        return generate_damage_zones(result, shockwave_scale)

    def nearest_city(
        self, lat: float, lon: float, country_affinity: bool = False,
    ) -> Optional[CityRecord]:
        index = self.index
        if index is None:
            return None
        return index.nearest(lat, lon, country_affinity=country_affinity)

    def search(self, query: str, limit: int = 20) -> list[CityRecord]:
        index = self.index
        if index is None:
            return []
        return index.search(query, limit)


def simulate_with_cities(
    params: ImpactParameters,
    cities: Iterable[CityRecord],
    config: PhysicsConfig = DEFAULT_CONFIG,
    observer: DiagnosticObserver = log_diagnostic,
    top_n: int = DEFAULT_TOP_N,
) -> SimulationResult:
    """One-shot simulation against a plain collection of cities."""
    result = simulate_impactor(params, config, observer)
    return result.with_population(populations_for_result(result, list(cities)), top_n)
