"""Advisory notices emitted while computing impact effects.

Diagnostics never interrupt a computation. They go to an observer callback
so callers decide where they end up; the default one writes to the module
logger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

CRATER_CAPPED = "crater_capped"
LARGE_CRATER = "large_crater"
BLAST_CAPPED = "blast_capped"
THERMAL_CAPPED = "thermal_capped"
GLOBAL_THERMAL = "global_thermal"
EXTREME_ENERGY = "extreme_energy"


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal notice."""

    code: str
    message: str
    value: Optional[float] = None


DiagnosticObserver = Callable[[Diagnostic], None]


def log_diagnostic(diagnostic: Diagnostic) -> None:
    logger.warning("[impact] %s", diagnostic.message)


def ignore_diagnostic(diagnostic: Diagnostic) -> None:
    pass


class DiagnosticCollector:
    """Observer that keeps every notice it receives."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def codes(self) -> list[str]:
        return [d.code for d in self.diagnostics]

    def __len__(self) -> int:
        return len(self.diagnostics)
