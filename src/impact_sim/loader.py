"""Once-per-process loading of the city dataset into a CityIndex.

Every load, sync or async, runs inside one lock: the first caller fetches
and parses, callers arriving meanwhile wait for it, and later callers get
the finished index straight away. A failed load degrades to an empty index
instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

import httpx

from impact_sim.city_index import CityIndex
from impact_sim.clients.dataset_client import DatasetClient
from impact_sim.errors import DatasetUnavailable
from impact_sim.models import CityRecord
from impact_sim.parsers import PARSER_MAP, CityParser
from impact_sim.sources import DatasetSource, default_sources

logger = logging.getLogger(__name__)


class CityDatasetLoader:
    """Loads the first usable dataset source and caches the resulting index."""

    def __init__(
        self,
        sources: Optional[list[DatasetSource]] = None,
        parsers: Optional[dict[str, CityParser]] = None,
        require_population: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.sources = sources if sources is not None else default_sources()
        self.parsers = parsers if parsers is not None else PARSER_MAP
        self.require_population = require_population
        self._transport = transport

        self._index: Optional[CityIndex] = None
        self._lock = threading.RLock()
        self.last_error: Optional[DatasetUnavailable] = None
        self.loaded_from: Optional[str] = None

    @property
    def is_loaded(self) -> bool:
        return self._index is not None

    @property
    def index(self) -> Optional[CityIndex]:
        """The loaded index, or None if no load has finished yet."""
        return self._index

    async def load(self) -> CityIndex:
        """Load once; safe from any thread and any event loop.

        The fetch runs in a worker thread under the loader lock, so
        concurrent coroutines, threads and load_blocking() callers share a
        single fetch.
        """
        if self._index is not None:
            return self._index
        return await asyncio.to_thread(self.load_blocking)

    def load_blocking(self) -> CityIndex:
        """Thread-safe synchronous load. Must not run inside an event loop."""
        with self._lock:
            if self._index is None:
                self._index = self._build(asyncio.run(self._fetch_or_empty()))
            return self._index

    async def reload(self) -> CityIndex:
        """Drop the cached index and rebuild it from the sources."""
        return await asyncio.to_thread(self.reload_blocking)

    def reload_blocking(self) -> CityIndex:
        with self._lock:
            self._index = None
            self.last_error = None
            self.loaded_from = None
            return self.load_blocking()

    async def _fetch_or_empty(self) -> list[CityRecord]:
        try:
            records = await self._fetch_records()
        except DatasetUnavailable as exc:
            logger.warning("%s", exc)
            self.last_error = exc
            return []
        self.last_error = None
        return records

    def _build(self, records: list[CityRecord]) -> CityIndex:
        index = CityIndex(records)
        if records:
            logger.info(
                "Loaded %d cities (%d with population) into %d grid cells from %s",
                len(index), index.populated_count, index.cell_count, self.loaded_from,
            )
        return index

    async def _fetch_records(self) -> list[CityRecord]:
        """Try each enabled source in order; first one with records wins.

        Raises:
            DatasetUnavailable: if no source produced any records.
        """
        tried: list[str] = []
        last_reason: Optional[str] = None

        for source in self.sources:
            if not source.enabled:
                continue
            tried.append(source.name)

            parser = self.parsers.get(source.format)
            if parser is None:
                logger.error("[%s] no parser registered for format '%s'", source.name, source.format)
                last_reason = f"unknown format {source.format}"
                continue

            try:
                async with DatasetClient(source, transport=self._transport) as client:
                    raw_text = await client.fetch_text()
                records = parser.parse(raw_text)
            except (OSError, RuntimeError, ValueError) as exc:
                logger.warning("[%s] could not load %s: %s", source.name, source.location, exc)
                last_reason = str(exc)
                continue

            if not records:
                logger.info("[%s] no usable city records, trying next source", source.name)
                last_reason = "no usable records"
                continue
            if self.require_population and not any(c.effective_population > 0 for c in records):
                logger.info("[%s] no populated cities, trying next source", source.name)
                last_reason = "no population data"
                continue

            self.loaded_from = source.location
            return records

        raise DatasetUnavailable(tried, last_reason)
