"""Impact physics: energy, crater size, blast/thermal radii, seismic magnitude.

All formulas are simplified empirical scaling laws meant for illustrative
estimates. Units:
    diameter_m      meters
    density_kgm3    kg/m^3
    velocity_kms    km/s (converted to m/s internally)
    angle_deg       degrees above the horizon (90 = vertical)

The impact angle only changes how efficiently energy couples into the
crater. Mass and total kinetic energy always use the full velocity.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Optional

from impact_sim import diagnostics
from impact_sim.diagnostics import Diagnostic, DiagnosticObserver, log_diagnostic
from impact_sim.errors import InvalidParameters
from impact_sim.geo import EARTH_RADIUS_KM
from impact_sim.models import (
    ZONE_BLAST,
    ZONE_CRATER,
    ZONE_THERMAL,
    DamageZone,
    ImpactParameters,
    SimulationResult,
)

logger = logging.getLogger(__name__)

G = 9.81                    # m/s^2
MT_JOULES = 4.184e15        # 1 megaton TNT in joules
TARGET_DENSITY = 2700.0     # kg/m^3, generic rock
CRATER_MAX_KM = 12000.0
CRATER_K = 1.161

# Crater scaling exponents
_GRAVITY_EXP = -0.22
_VELOCITY_EXP = 0.44
_SIZE_EXP = 0.78

# Impactors above this size with craters above this size get a notice
_LARGE_IMPACTOR_M = 20000.0
_LARGE_CRATER_KM = 500.0


@dataclass(frozen=True)
class PhysicsConfig:
    """Tunable constants of the simplified impact model."""

    blast_factor: float = 3.0               # × crater radius, recommended 2–5
    thermal_factor: float = 1.8             # × crater radius, recommended 1–3
    target_density_kgm3: float = TARGET_DENSITY
    crater_max_km: float = CRATER_MAX_KM
    small_body_diameter_m: float = 15000.0
    small_body_crater_max_km: float = 200.0
    min_coupling_velocity_mps: float = 10.0
    extreme_energy_mt: float = 1e6
    global_thermal_fraction: float = 0.8

    def __post_init__(self):
        if not 2.0 <= self.blast_factor <= 5.0:
            logger.info("blast_factor %.2f outside recommended range 2–5", self.blast_factor)
        if not 1.0 <= self.thermal_factor <= 3.0:
            logger.info("thermal_factor %.2f outside recommended range 1–3", self.thermal_factor)


DEFAULT_CONFIG = PhysicsConfig()


# ── Unit helpers ─────────────────────────────────────────────────────────


def joules_to_megatons(energy_j: float) -> float:
    return energy_j / MT_JOULES


def meters_to_kilometers(meters: float) -> float:
    return meters / 1000


def kmps_to_mps(velocity_kms: float) -> float:
    return velocity_kms * 1000


# ── Core formulas ────────────────────────────────────────────────────────


def mass_from_diameter(diameter_m: float, density_kgm3: float) -> float:
    """Mass of a spherical impactor in kg."""
    r = diameter_m / 2
    return (4 / 3) * math.pi * r * r * r * density_kgm3


def kinetic_energy_joules(mass_kg: float, velocity_mps: float) -> float:
    return 0.5 * mass_kg * velocity_mps * velocity_mps


def impact_energy_joules(diameter_m: float, density_kgm3: float, velocity_kms: float) -> float:
    """Total kinetic energy of the impactor; no angle reduction."""
    return kinetic_energy_joules(
        mass_from_diameter(diameter_m, density_kgm3), kmps_to_mps(velocity_kms),
    )


def crater_diameter_meters(
    diameter_m: float,
    density_kgm3: float,
    velocity_mps: float,
    angle_deg: float,
    config: PhysicsConfig = DEFAULT_CONFIG,
    observer: Optional[DiagnosticObserver] = None,
) -> float:
    """Final crater diameter (m) from Collins-style simplified scaling.

        D = k · g^-0.22 · v_eff^0.44 · (ρi/ρt)^(1/3) · r^0.78

    where v_eff is the vertical velocity component, floored so grazing
    impacts still couple some energy. The result is clipped to
    [0, crater_max_km].
    """
    angle_rad = math.radians(angle_deg)
    v_eff = max(velocity_mps * math.sin(angle_rad), config.min_coupling_velocity_mps)

    radius_m = diameter_m / 2
    gravity_term = G ** _GRAVITY_EXP
    velocity_term = v_eff ** _VELOCITY_EXP
    density_ratio = (density_kgm3 / config.target_density_kgm3) ** (1 / 3)
    size_term = radius_m ** _SIZE_EXP

    d_km = CRATER_K * gravity_term * velocity_term * density_ratio * size_term / 1000
    capped_km = min(max(d_km, 0.0), config.crater_max_km)

    if observer is not None and diameter_m > _LARGE_IMPACTOR_M and capped_km > _LARGE_CRATER_KM:
        observer(Diagnostic(
            diagnostics.LARGE_CRATER,
            f"Extremely large crater implied by parameters; results may be "
            f"global-level. D_km={capped_km:.1f}",
            capped_km,
        ))
    return capped_km * 1000


def blast_thermal_radii(
    crater_km: float, config: PhysicsConfig = DEFAULT_CONFIG,
) -> tuple[float, float, float]:
    """(crater_radius_km, blast_km, thermal_km) as multiples of crater radius."""
    crater_radius_km = crater_km / 2
    return (
        crater_radius_km,
        crater_radius_km * config.blast_factor,
        crater_radius_km * config.thermal_factor,
    )


def seismic_magnitude(energy_j: float) -> float:
    """Richter-equivalent magnitude from total energy, clamped to [0, 12]."""
    magnitude = 0.67 * math.log10(max(energy_j, 1.0)) - 5.87
    return min(max(magnitude, 0.0), 12.0)


# ── Validation ───────────────────────────────────────────────────────────


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def validate_parameters(params: ImpactParameters, require_location: bool = True) -> list[str]:
    """Validate impactor parameters. Returns list of error messages (empty = valid)."""
    errors: list[str] = []

    for name in ("diameter_m", "density_kgm3", "velocity_kms"):
        value = getattr(params, name)
        if not _is_number(value):
            errors.append(f"{name} is missing or not a number")
        elif not math.isfinite(value) or value <= 0:
            errors.append(f"{name} {value} must be finite and positive")

    angle = params.angle_deg
    if not _is_number(angle):
        errors.append("angle_deg is missing or not a number")
    elif not math.isfinite(angle) or not 0 <= angle <= 90:
        errors.append(f"angle_deg {angle} out of range [0, 90]")

    for name, limit in (("lat", 90), ("lng", 180)):
        value = getattr(params, name)
        if value is None:
            if require_location:
                errors.append(f"{name} is required")
            continue
        if not _is_number(value):
            errors.append(f"{name} is not a number")
        elif not math.isfinite(value) or not -limit <= value <= limit:
            errors.append(f"{name} {value} out of range [-{limit}, {limit}]")

    return errors


# ── Pipeline ─────────────────────────────────────────────────────────────


def simulate_impactor(
    params: ImpactParameters,
    config: PhysicsConfig = DEFAULT_CONFIG,
    observer: DiagnosticObserver = log_diagnostic,
    require_location: bool = True,
) -> SimulationResult:
    """Run the physics pipeline for one impactor.

    Raises:
        InvalidParameters: if any input is missing, non-finite, out of range,
            or so large that the kinetic energy overflows.
    """
    errors = validate_parameters(params, require_location=require_location)
    if errors:
        raise InvalidParameters(errors)

    diameter_m = float(params.diameter_m)
    density = float(params.density_kgm3)
    velocity_mps = kmps_to_mps(float(params.velocity_kms))

    mass_kg = mass_from_diameter(diameter_m, density)
    energy_j = kinetic_energy_joules(mass_kg, velocity_mps)
    if not math.isfinite(energy_j):
        raise InvalidParameters([f"kinetic energy overflows for diameter_m={diameter_m}, "
                                 f"density_kgm3={density}, velocity_kms={params.velocity_kms}"])

    crater_m = crater_diameter_meters(
        diameter_m, density, velocity_mps, float(params.angle_deg), config, observer,
    )
    crater_km = meters_to_kilometers(crater_m)

    if diameter_m <= config.small_body_diameter_m and crater_km > config.small_body_crater_max_km:
        observer(Diagnostic(
            diagnostics.CRATER_CAPPED,
            f"Crater diameter capped to {config.small_body_crater_max_km:.0f} km for "
            f"impactor ≤ {config.small_body_diameter_m / 1000:.0f} km (was {crater_km:.1f} km)",
            crater_km,
        ))
        crater_km = config.small_body_crater_max_km
        crater_m = crater_km * 1000

    _, blast_km, thermal_km = blast_thermal_radii(crater_km, config)

    if blast_km > EARTH_RADIUS_KM:
        observer(Diagnostic(diagnostics.BLAST_CAPPED, "Blast radius capped at Earth radius", blast_km))
        blast_km = EARTH_RADIUS_KM
    if thermal_km > EARTH_RADIUS_KM:
        observer(Diagnostic(diagnostics.THERMAL_CAPPED, "Thermal radius capped at Earth radius", thermal_km))
        thermal_km = EARTH_RADIUS_KM
    if thermal_km > EARTH_RADIUS_KM * config.global_thermal_fraction:
        observer(Diagnostic(
            diagnostics.GLOBAL_THERMAL,
            f"Thermal radius exceeds {config.global_thermal_fraction:.0%} of Earth radius; "
            f"global-level effects likely",
            thermal_km,
        ))

    energy_mt = joules_to_megatons(energy_j)
    if energy_mt > config.extreme_energy_mt:
        observer(Diagnostic(
            diagnostics.EXTREME_ENERGY,
            f"Total energy exceeds {config.extreme_energy_mt:.0e} Mt TNT; "
            f"this is a global/extreme event",
            energy_mt,
        ))

    return SimulationResult(
        impact_energy_j=energy_j,
        impact_energy_mt=energy_mt,
        mass_kg=mass_kg,
        crater_m=crater_m,
        crater_km=crater_km,
        blast_radius_m=blast_km * 1000,
        blast_radius_km=blast_km,
        thermal_radius_m=thermal_km * 1000,
        thermal_radius_km=thermal_km,
        seismic_magnitude=seismic_magnitude(energy_j),
        latitude=params.lat,
        longitude=params.lng,
    )


def generate_damage_zones(result: SimulationResult, shockwave_scale: float = 1.0) -> list[DamageZone]:
    """Crater, blast and thermal rings for a result, innermost first.

    ``shockwave_scale`` stretches the blast and thermal rings only.
    """
    blast_m = result.blast_radius_m * shockwave_scale
    thermal_m = result.thermal_radius_m * shockwave_scale
    return [
        DamageZone(
            kind=ZONE_CRATER,
            radius_m=result.crater_m / 2,
            radius_km=result.crater_km / 2,
            description=f"Crater: {result.crater_km:.1f} km diameter",
        ),
        DamageZone(
            kind=ZONE_BLAST,
            radius_m=blast_m,
            radius_km=blast_m / 1000,
            description=f"Blast radius: {blast_m / 1000:.1f} km",
        ),
        DamageZone(
            kind=ZONE_THERMAL,
            radius_m=thermal_m,
            radius_km=thermal_m / 1000,
            description=f"Thermal radius: {thermal_m / 1000:.1f} km",
        ),
    ]
