"""Parser for newline-delimited JSON: one Feature or flat record per line."""

from __future__ import annotations

import json
import logging

from impact_sim.models import CityRecord
from impact_sim.parsers.base import CityParser, normalize_entries

logger = logging.getLogger(__name__)

MAX_LINES = 50000


class NDJSONParser(CityParser):
    """Parse one JSON record or Feature per line, skipping bad lines."""

    def __init__(self, max_lines: int = MAX_LINES):
        self.max_lines = max_lines

    def parse(self, raw_payload: str) -> list[CityRecord]:
        lines = [line for line in raw_payload.splitlines() if line.strip()]
        if len(lines) > self.max_lines:
            logger.warning("NDJSON dataset truncated to %d of %d lines", self.max_lines, len(lines))

        entries = []
        skipped = 0
        for line in lines[:self.max_lines]:
            try:
                entries.append(json.loads(line))
            except json.JSONDecodeError:
                skipped += 1
                continue

        if skipped:
            logger.info("Skipped %d unparsable NDJSON line(s)", skipped)
        if lines and not entries:
            raise ValueError("No parsable NDJSON lines")
        return normalize_entries(entries)
