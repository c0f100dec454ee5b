"""Source registry for city datasets."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CITIES_ENV = "IMPACT_SIM_CITIES"
DATA_DIR_ENV = "IMPACT_SIM_DATA_DIR"


@dataclass
class DatasetSource:
    """Configuration for a single city dataset location."""

    name: str
    location: str               # filesystem path or http(s) URL
    format: str                 # "json", "geojson" or "ndjson"
    timeout_seconds: int = 20
    max_retries: int = 2
    retry_backoff_base: float = 2.0
    enabled: bool = True

    @property
    def is_remote(self) -> bool:
        return self.location.startswith(("http://", "https://"))


def infer_format(location: str) -> str:
    suffix = Path(location.split("?", 1)[0]).suffix.lower()
    if suffix == ".geojson":
        return "geojson"
    if suffix in (".ndjson", ".jsonl"):
        return "ndjson"
    return "json"


def source_for(location: str, name: str | None = None) -> DatasetSource:
    """Build a source for a single path or URL, format taken from its suffix."""
    return DatasetSource(
        name=name or Path(location.split("?", 1)[0]).name or location,
        location=location,
        format=infer_format(location),
    )


def default_sources() -> list[DatasetSource]:
    """Candidate datasets in preference order.

    ``IMPACT_SIM_CITIES`` replaces the list with a single location;
    otherwise the bundled candidates are resolved under
    ``IMPACT_SIM_DATA_DIR`` (default: the working directory).
    """
    override = os.getenv(CITIES_ENV)
    if override:
        return [source_for(override, name="env")]

    data_dir = Path(os.getenv(DATA_DIR_ENV, "."))
    return [
        DatasetSource(
            name="educational-json",
            location=str(data_dir / "data" / "educational" / "cities.json"),
            format="json",
        ),
        DatasetSource(
            name="cities-geojson",
            location=str(data_dir / "data" / "cities.geojson"),
            format="geojson",
        ),
        DatasetSource(
            name="educational-geojson",
            location=str(data_dir / "data" / "educational" / "cities.geojson"),
            format="geojson",
        ),
    ]
