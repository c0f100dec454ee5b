"""Abstract base parser and the field normalization shared by all formats."""

from __future__ import annotations

import abc
import math
from typing import Any, Iterable, Optional

from impact_sim.models import CityRecord

# Accepted spellings per canonical field, matched case-insensitively, in
# priority order.
NAME_KEYS = ("name", "city", "town", "nameascii")
COUNTRY_KEYS = ("country", "country_name", "sov0name", "adm0name", "cc")
LAT_KEYS = ("lat", "latitude")
LON_KEYS = ("lon", "lng", "longitude")
POPULATION_KEYS = ("population", "pop_max", "pop_est", "pop")

UNKNOWN_NAME = "Unknown"


class CityParser(abc.ABC):
    """Abstract parser that converts a raw dataset body → list of CityRecord."""

    @abc.abstractmethod
    def parse(self, raw_payload: str) -> list[CityRecord]:
        """Parse a raw dataset body into canonical city records.

        Args:
            raw_payload: The dataset file or response body (text).

        Returns:
            List of CityRecord instances. Entries without usable
            coordinates are dropped.

        Raises:
            ValueError: if the payload as a whole is not in this format.
        """


def normalize_entries(entries: Iterable[Any]) -> list[CityRecord]:
    """Normalize flat records and GeoJSON Features into CityRecords."""
    records: list[CityRecord] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if "properties" in entry or entry.get("type") == "Feature":
            record = normalize_feature(entry)
        else:
            record = normalize_entry(entry)
        if record is not None:
            records.append(record)
    return records


def normalize_feature(feature: dict) -> Optional[CityRecord]:
    """Normalize one GeoJSON Feature; properties win over geometry."""
    props = feature.get("properties")
    if not isinstance(props, dict):
        props = {}
    return normalize_entry(props, fallback_coords=_geometry_point(feature.get("geometry")))


def normalize_entry(
    entry: dict, fallback_coords: Optional[tuple[float, float]] = None,
) -> Optional[CityRecord]:
    """Map one raw record onto CityRecord, or None if it has no usable position.

    ``fallback_coords`` is a (lon, lat) pair used for whichever coordinate the
    record itself lacks.
    """
    fields = _lower_keys(entry)

    lat = _safe_float(_first(fields, LAT_KEYS))
    lon = _safe_float(_first(fields, LON_KEYS))
    if fallback_coords is not None:
        if lat is None:
            lat = _safe_float(fallback_coords[1])
        if lon is None:
            lon = _safe_float(fallback_coords[0])
    if lat is None or lon is None:
        return None

    # Longitude normalization to [-180, 180]
    if 180 < lon <= 360:
        lon -= 360
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        return None

    name = _first(fields, NAME_KEYS)
    country = _first(fields, COUNTRY_KEYS)
    return CityRecord(
        name=str(name) if name is not None else UNKNOWN_NAME,
        lat=lat,
        lon=lon,
        country=str(country) if country is not None else None,
        population=_safe_population(_first(fields, POPULATION_KEYS)),
    )


def _geometry_point(geometry: Any) -> Optional[tuple[float, float]]:
    """Representative (lon, lat) of a geometry.

    Points are used as-is; polygons fall back to the mean of their vertices.
    """
    if not isinstance(geometry, dict):
        return None
    coords = geometry.get("coordinates")
    kind = geometry.get("type")
    try:
        if kind == "Point":
            return coords[0], coords[1]
        if kind == "Polygon":
            rings = coords
        elif kind == "MultiPolygon":
            rings = coords[0]
        else:
            return None
        xs = [_safe_float(c[0]) for ring in rings for c in ring]
        ys = [_safe_float(c[1]) for ring in rings for c in ring]
    except (IndexError, KeyError, TypeError):
        return None
    # Any unusable vertex makes the whole centroid unusable
    if not xs or None in xs or None in ys:
        return None
    return sum(xs) / len(xs), sum(ys) / len(ys)


def _lower_keys(entry: dict) -> dict:
    lowered: dict = {}
    for key, value in entry.items():
        lowered.setdefault(str(key).lower(), value)
    return lowered


def _first(fields: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = fields.get(key)
        if value is not None and value != "":
            return value
    return None


def _safe_float(val) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _safe_population(val) -> int | None:
    f = _safe_float(val)
    if f is None:
        return None
    return int(round(f))
