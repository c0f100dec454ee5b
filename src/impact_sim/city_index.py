"""In-memory city collection with a coarse 1°x1° grid index.

The index is built once from a finished list of records and never mutated
afterwards, so any number of readers may query it concurrently.
"""

from __future__ import annotations

import logging
import math
import unicodedata
from typing import Iterable, Iterator, Optional

from impact_sim.geo import (
    GridKey,
    box_keys,
    clamp_coordinates,
    grid_key,
    haversine_km,
    neighbor_keys,
    radius_to_degrees,
)
from impact_sim.models import CityRecord
from impact_sim.parsers.base import normalize_entries
from impact_sim.regions import country_matches, guess_country

logger = logging.getLogger(__name__)

# Reverse-geocode search widths, in degrees, before a full scan
NEAR_RADIUS_DEG = 2
WIDE_RADIUS_DEG = 5

# Country-affinity override window
AFFINITY_WINDOW_KM = 300.0


def normalize_text(text: str) -> str:
    """Strip diacritics and lowercase."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


class CityIndex:
    """Read-only city records plus a grid of dataset positions per cell."""

    def __init__(self, records: Iterable[CityRecord] = ()):
        self._records: tuple[CityRecord, ...] = tuple(records)
        grid: dict[GridKey, list[int]] = {}
        for position, city in enumerate(self._records):
            grid.setdefault(grid_key(city.lat, city.lon), []).append(position)
        self._grid: dict[GridKey, tuple[int, ...]] = {k: tuple(v) for k, v in grid.items()}

    @classmethod
    def from_raw(cls, entries: Iterable[dict]) -> CityIndex:
        """Build from raw dicts in any supported field-naming convention."""
        return cls(normalize_entries(entries))

    # ── Collection access ────────────────────────────────────────────────

    @property
    def records(self) -> tuple[CityRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CityRecord]:
        return iter(self._records)

    @property
    def cell_count(self) -> int:
        return len(self._grid)

    @property
    def populated_count(self) -> int:
        return sum(1 for c in self._records if c.effective_population > 0)

    def cell(self, key: GridKey) -> tuple[CityRecord, ...]:
        return tuple(self._records[i] for i in self._grid.get(key, ()))

    def _gather(self, keys: Iterable[GridKey]) -> list[CityRecord]:
        """Records in the given cells, in dataset order."""
        positions: list[int] = []
        for key in keys:
            positions.extend(self._grid.get(key, ()))
        positions.sort()
        return [self._records[i] for i in positions]

    # ── Spatial queries ──────────────────────────────────────────────────

    def candidates_within(self, lat: float, lon: float, radius_km: float) -> list[CityRecord]:
        """Superset of the cities within radius_km, in dataset order.

        Only the grid cells overlapping the circle's bounding box are
        visited. Circles touching a pole fall back to every record.
        """
        span = radius_to_degrees(lat, radius_km)
        if span is None:
            return list(self._records)
        dlat, dlon = span
        return self._gather(box_keys(lat, lon, dlat, dlon))

    def nearest(
        self, lat: float, lon: float, country_affinity: bool = False,
    ) -> Optional[CityRecord]:
        found = self.nearest_with_distance(lat, lon, country_affinity=country_affinity)
        return found[0] if found else None

    def nearest_with_distance(
        self, lat: float, lon: float, country_affinity: bool = False,
    ) -> Optional[tuple[CityRecord, float]]:
        """Closest city to a point and its distance in km (reverse geocoding).

        Searches the 2° neighbourhood, then 5°, then every record. Among
        equally distant cities the first in dataset order wins. Returns None
        for an empty index or non-finite coordinates.
        """
        if not self._records or not (math.isfinite(lat) and math.isfinite(lon)):
            return None
        lat, lon = clamp_coordinates(lat, lon)

        for radius_deg in (NEAR_RADIUS_DEG, WIDE_RADIUS_DEG, None):
            if radius_deg is None:
                candidates = list(self._records)
            else:
                candidates = self._gather(neighbor_keys(lat, lon, radius_deg))
            if candidates:
                break

        scored = [(city, haversine_km(lat, lon, city.lat, city.lon)) for city in candidates]
        best = scored[0]
        for city, dist in scored[1:]:
            if dist < best[1]:
                best = (city, dist)

        if country_affinity:
            best = self._prefer_expected_country(lat, lon, best, scored)
        return best

    @staticmethod
    def _prefer_expected_country(
        lat: float,
        lon: float,
        best: tuple[CityRecord, float],
        scored: list[tuple[CityRecord, float]],
    ) -> tuple[CityRecord, float]:
        """Swap in a city from the country the point seems to be in.

        Heuristic for sparse datasets: if the nearest city belongs to
        another country than the bounding-box guess, take the closest
        city of the guessed country within AFFINITY_WINDOW_KM of it.
        """
        expected = guess_country(lat, lon)
        if expected is None or country_matches(best[0].country, expected):
            return best

        limit = best[1] + AFFINITY_WINDOW_KM
        preferred: Optional[tuple[CityRecord, float]] = None
        for city, dist in scored:
            if dist < limit and country_matches(city.country, expected):
                if preferred is None or dist < preferred[1]:
                    preferred = (city, dist)

        if preferred is not None:
            logger.debug(
                "Country affinity: %s (%.1f km) over %s (%.1f km)",
                preferred[0].label, preferred[1], best[0].label, best[1],
            )
            return preferred
        return best

    # ── Text search ──────────────────────────────────────────────────────

    def search(self, query: str, limit: int = 20) -> list[CityRecord]:
        """Rank cities by how their name matches the query.

        Buckets, in priority order: name starts with the query, a word of
        the name starts with it, name contains it. Each bucket is sorted by
        population, largest first, missing population counting as 0.
        """
        q = normalize_text(query.strip())
        if not q or limit <= 0:
            return []

        prefix: list[CityRecord] = []
        word_start: list[CityRecord] = []
        substring: list[CityRecord] = []

        for city in self._records:
            name = normalize_text(city.name or "")
            if name.startswith(q):
                prefix.append(city)
            elif any(part.startswith(q) for part in name.split()):
                word_start.append(city)
            elif q in name:
                substring.append(city)

        def by_population(bucket: list[CityRecord]) -> list[CityRecord]:
            return sorted(bucket, key=lambda c: -c.effective_population)

        merged = by_population(prefix) + by_population(word_start) + by_population(substring)
        return merged[:limit]
