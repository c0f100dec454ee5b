"""Data models for impact simulation and city population lookups."""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, replace
from typing import Optional

ZONE_CRATER = "crater"
ZONE_BLAST = "blast"
ZONE_THERMAL = "thermal"


@dataclass(frozen=True)
class ImpactParameters:
    """Impactor description fed to the physics engine."""

    diameter_m: float
    density_kgm3: float
    velocity_kms: float
    angle_deg: float            # 0 = grazing, 90 = vertical
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None

    def at(self, lat: float, lng: float) -> ImpactParameters:
        """Same impactor aimed at another target."""
        return replace(self, lat=lat, lng=lng)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> ImpactParameters:
        return cls(**json.loads(raw))


@dataclass(frozen=True)
class CityRecord:
    """Canonical city point, whatever shape the source dataset used."""

    name: str
    lat: float
    lon: float
    country: Optional[str] = None
    population: Optional[int] = None

    @property
    def effective_population(self) -> int:
        return self.population or 0

    @property
    def label(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name


@dataclass(frozen=True)
class AffectedCity:
    """A populated city inside at least one damage zone."""

    name: str
    country: Optional[str]
    population: int
    distance_km: float
    zones: tuple[str, ...]


@dataclass(frozen=True)
class ZonePopulation:
    """Per-zone population totals plus the ranked affected cities.

    Zones are inclusive thresholds: a city within the crater radius also
    counts toward any larger zone it falls inside.
    """

    crater_pop: int = 0
    blast_pop: int = 0
    thermal_pop: int = 0
    cities: tuple[AffectedCity, ...] = ()

    @property
    def population_affected(self) -> int:
        """Population of every city in at least one zone, counted once."""
        return sum(c.population for c in self.cities)

    def top(self, n: int) -> tuple[AffectedCity, ...]:
        return self.cities[:max(n, 0)]

    def in_zone(self, zone: str) -> tuple[AffectedCity, ...]:
        return tuple(c for c in self.cities if zone in c.zones)


@dataclass(frozen=True)
class SimulationResult:
    """Physical effects of one impact, optionally enriched with population data."""

    impact_energy_j: float
    impact_energy_mt: float
    mass_kg: float
    crater_m: float
    crater_km: float
    blast_radius_m: float
    blast_radius_km: float
    thermal_radius_m: float
    thermal_radius_km: float
    seismic_magnitude: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Population enrichment (absent until a city dataset is applied)
    population_affected: Optional[int] = None
    affected_cities: Optional[tuple[AffectedCity, ...]] = None
    crater_population_total: Optional[int] = None
    blast_population_total: Optional[int] = None
    thermal_population_total: Optional[int] = None

    @property
    def crater_radius_km(self) -> float:
        return self.crater_km / 2

    @property
    def has_population(self) -> bool:
        return self.population_affected is not None

    def with_population(self, zones: ZonePopulation, top_n: int = 10) -> SimulationResult:
        """New result carrying zone totals and the top-N affected cities."""
        return replace(
            self,
            population_affected=zones.population_affected,
            affected_cities=zones.top(top_n),
            crater_population_total=zones.crater_pop,
            blast_population_total=zones.blast_pop,
            thermal_population_total=zones.thermal_pop,
        )

    def to_dict(self) -> dict:
        d = asdict(self)
        if d["affected_cities"] is not None:
            d["affected_cities"] = [
                {**c, "zones": list(c["zones"])} for c in d["affected_cities"]
            ]
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, raw: str) -> SimulationResult:
        d = json.loads(raw)
        if d.get("affected_cities") is not None:
            d["affected_cities"] = tuple(
                AffectedCity(**{**c, "zones": tuple(c["zones"])})
                for c in d["affected_cities"]
            )
        return cls(**d)


@dataclass(frozen=True)
class DamageZone:
    """One concentric effect ring around the impact point."""

    kind: str                   # "crater", "blast" or "thermal"
    radius_m: float
    radius_km: float
    description: str = ""


@dataclass(frozen=True)
class ImpactorPreset:
    """Named impactor configuration, usually a historical event."""

    name: str
    description: str
    category: str               # "asteroid", "comet", "meteor"
    parameters: ImpactParameters
    year: Optional[str] = None

    @property
    def has_location(self) -> bool:
        return self.parameters.has_location
