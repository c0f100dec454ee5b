"""Geographic helpers: great-circle distance, grid cells and bounding boxes."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0

GridKey = tuple[int, int]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points on Earth in kilometers.

    Uses the Haversine formula on a sphere of radius 6371 km. Inputs are
    decimal degrees. The result is symmetric, zero for identical points and
    never exceeds half the circumference.
    """
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)

    dlat = rlat2 - rlat1
    dlon = rlon2 - rlon1

    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    # Rounding can push a slightly outside [0, 1] near antipodal points
    a = min(max(a, 0.0), 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def clamp_coordinates(lat: float, lon: float) -> tuple[float, float]:
    """Clamp a coordinate pair into [-90, 90] x [-180, 180]."""
    return max(-90.0, min(90.0, lat)), max(-180.0, min(180.0, lon))


def grid_key(lat: float, lon: float) -> GridKey:
    """1°x1° grid cell containing the point."""
    return math.floor(lat), math.floor(lon)


def neighbor_keys(lat: float, lon: float, radius_deg: float) -> list[GridKey]:
    """Grid cells covering a square of ±radius_deg around the point."""
    return box_keys(lat, lon, radius_deg, radius_deg)


def box_keys(lat: float, lon: float, dlat: float, dlon: float) -> list[GridKey]:
    """Grid cells covering the box lat±dlat, lon±dlon.

    Longitude cells wrap across the antimeridian. Cities sitting exactly on
    lon=180 live in cell 180, so that cell is added whenever -180 is.
    """
    lat_start = max(math.floor(lat - dlat), -90)
    lat_end = min(math.floor(lat + dlat), 90)
    lon_start = math.floor(lon - dlon)
    lon_end = math.floor(lon + dlon)

    if lon_end - lon_start >= 359:
        lon_cells = list(range(-180, 181))
    else:
        lon_cells = []
        for raw in range(lon_start, lon_end + 1):
            wrapped = (raw + 180) % 360 - 180
            if wrapped not in lon_cells:
                lon_cells.append(wrapped)
            if wrapped == -180 and 180 not in lon_cells:
                lon_cells.append(180)

    return [(la, lo) for la in range(lat_start, lat_end + 1) for lo in lon_cells]


def radius_to_degrees(lat: float, radius_km: float) -> tuple[float, float] | None:
    """Half-widths (lat°, lon°) of a box enclosing a circle of radius_km.

    Returns None when the box cannot be expressed in degrees (circle reaches
    a pole or spans the whole globe); callers fall back to a full scan.
    """
    angular = max(radius_km, 0.0) / EARTH_RADIUS_KM * 1.0001
    dlat = math.degrees(angular)
    if abs(lat) + dlat >= 90:
        return None
    dlon = math.degrees(math.asin(math.sin(angular) / math.cos(math.radians(lat))))
    return dlat, dlon
