"""Named impactor presets based on well-known events."""

from __future__ import annotations

from impact_sim.models import ImpactParameters, ImpactorPreset

IMPACTOR_PRESETS: list[ImpactorPreset] = [
    ImpactorPreset(
        name="Chicxulub",
        description="Dinosaur extinction event, Yucatán Peninsula, Mexico",
        category="asteroid",
        year="66 Ma",
        parameters=ImpactParameters(10000, 3000, 20, 45, lat=21.3, lng=-89.5),
    ),
    ImpactorPreset(
        name="Tunguska",
        description="Forest flattening event, Siberia, Russia",
        category="asteroid",
        year="1908",
        parameters=ImpactParameters(60, 3000, 15, 30, lat=60.9, lng=101.9),
    ),
    ImpactorPreset(
        name="Chelyabinsk",
        description="Airburst meteor, Chelyabinsk, Russia",
        category="meteor",
        year="2013",
        parameters=ImpactParameters(20, 3000, 19, 45, lat=55.15, lng=61.41),
    ),
    ImpactorPreset(
        name="Apophis",
        description="Near-Earth flyby, hypothetical impact",
        category="asteroid",
        year="2029 (flyby)",
        parameters=ImpactParameters(370, 3000, 7, 45),
    ),
    ImpactorPreset(
        name="Vredefort",
        description="Ancient impact crater, South Africa",
        category="asteroid",
        year="~2 Ga",
        parameters=ImpactParameters(10000, 3000, 20, 45, lat=-27.0, lng=27.4),
    ),
    ImpactorPreset(
        name="Meteor Crater",
        description="Well-preserved crater, Arizona, USA",
        category="asteroid",
        year="~50,000 years BP",
        parameters=ImpactParameters(1200, 3000, 17, 45, lat=35.027, lng=-111.022),
    ),
]

_BY_NAME = {p.name.lower(): p for p in IMPACTOR_PRESETS}


def get_preset(name: str) -> ImpactorPreset:
    """Look up a preset by name, case-insensitively.

    Raises:
        KeyError: if no preset has that name.
    """
    try:
        return _BY_NAME[name.strip().lower()]
    except KeyError:
        raise KeyError(f"Unknown preset '{name}'; choose from {sorted(p.name for p in IMPACTOR_PRESETS)}") from None


def preset_names() -> list[str]:
    return [p.name for p in IMPACTOR_PRESETS]
