"""Parsers for converting raw city datasets to CityRecord."""

from impact_sim.parsers.base import CityParser, normalize_entries
from impact_sim.parsers.geojson import GeoJSONParser
from impact_sim.parsers.json_array import JSONArrayParser
from impact_sim.parsers.ndjson import NDJSONParser

PARSER_MAP: dict[str, CityParser] = {
    "json": JSONArrayParser(),
    "geojson": GeoJSONParser(),
    "ndjson": NDJSONParser(),
}

__all__ = [
    "PARSER_MAP",
    "CityParser",
    "GeoJSONParser",
    "JSONArrayParser",
    "NDJSONParser",
    "normalize_entries",
]
