"""Parser for GeoJSON FeatureCollection city datasets."""

from __future__ import annotations

import json

from impact_sim.models import CityRecord
from impact_sim.parsers.base import CityParser, normalize_entries


class GeoJSONParser(CityParser):
    """Parse a FeatureCollection (Natural Earth populated places and similar)."""

    def parse(self, raw_payload: str) -> list[CityRecord]:
        data = json.loads(raw_payload)
        if not isinstance(data, dict) or not isinstance(data.get("features"), list):
            raise ValueError("GeoJSON payload has no 'features' array")
        return normalize_entries(data["features"])
