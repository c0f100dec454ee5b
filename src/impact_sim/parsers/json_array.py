"""Parser for plain JSON city datasets.

Accepts a top-level array of flat records, or a FeatureCollection. A body
that is not valid JSON at all is retried as NDJSON.
"""

from __future__ import annotations

import json

from impact_sim.models import CityRecord
from impact_sim.parsers.base import CityParser, normalize_entries
from impact_sim.parsers.ndjson import NDJSONParser


class JSONArrayParser(CityParser):
    """Parse a JSON array of flat records, or a FeatureCollection."""

    def __init__(self, ndjson_fallback: NDJSONParser | None = None):
        self.ndjson_fallback = ndjson_fallback or NDJSONParser()

    def parse(self, raw_payload: str) -> list[CityRecord]:
        try:
            data = json.loads(raw_payload)
        except json.JSONDecodeError:
            return self.ndjson_fallback.parse(raw_payload)

        if isinstance(data, list):
            return normalize_entries(data)
        if isinstance(data, dict) and isinstance(data.get("features"), list):
            return normalize_entries(data["features"])
        raise ValueError(f"Unsupported JSON layout: {type(data).__name__}")
