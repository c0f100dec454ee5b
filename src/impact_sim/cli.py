"""CLI entrypoint for impact-sim."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from impact_sim.city_index import CityIndex
from impact_sim.errors import InvalidParameters
from impact_sim.loader import CityDatasetLoader
from impact_sim.models import ImpactParameters
from impact_sim.physics import simulate_impactor
from impact_sim.presets import IMPACTOR_PRESETS, get_preset
from impact_sim.simulator import ImpactSimulator
from impact_sim.sources import default_sources, source_for

console = Console()

DEFAULT_DENSITY = 3000.0
DEFAULT_ANGLE = 45.0


def _load_index(cities: Optional[str]) -> CityIndex:
    sources = [source_for(cities)] if cities else default_sources()
    loader = CityDatasetLoader(sources)
    index = loader.load_blocking()
    if loader.last_error is not None:
        click.echo(f"Warning: {loader.last_error}", err=True)
    return index


def _fmt_pop(value: Optional[int]) -> str:
    return f"{value:,}" if value is not None else "-"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show informational log messages.")
def cli(verbose: bool):
    """Impact Sim: asteroid impact effects and affected population."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("--preset", default=None, help="Named preset, e.g. Chicxulub. Other options override its values.")
@click.option("--diameter", type=float, help="Impactor diameter in meters.")
@click.option("--density", type=float, help="Density in kg/m^3 (default 3000).")
@click.option("--velocity", type=float, help="Velocity in km/s.")
@click.option("--angle", type=float, help="Angle above horizon in degrees (default 45).")
@click.option("--lat", type=float, help="Target latitude.")
@click.option("--lon", type=float, help="Target longitude.")
@click.option("--cities", default=None, help="City dataset path or URL.")
@click.option("--top", default=10, help="Affected cities to list.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON.")
def simulate(preset, diameter, density, velocity, angle, lat, lon, cities, top, as_json):
    """Simulate one impact and list the most affected cities."""
    overrides = {
        name: value
        for name, value in (
            ("diameter_m", diameter),
            ("density_kgm3", density),
            ("velocity_kms", velocity),
            ("angle_deg", angle),
        )
        if value is not None
    }
    if preset:
        try:
            params = replace(get_preset(preset).parameters, **overrides)
        except KeyError as exc:
            raise click.BadParameter(str(exc.args[0]), param_hint="--preset")
        if lat is not None and lon is not None:
            params = params.at(lat, lon)
    else:
        if diameter is None or velocity is None:
            raise click.UsageError("Give --preset or both --diameter and --velocity.")
        params = ImpactParameters(
            diameter,
            density if density is not None else DEFAULT_DENSITY,
            velocity,
            angle if angle is not None else DEFAULT_ANGLE,
            lat=lat,
            lng=lon,
        )

    try:
        if params.has_location:
            simulator = ImpactSimulator(index=_load_index(cities), top_n=top)
            result = simulator.simulate(params)
        else:
            result = simulate_impactor(params, require_location=False)
    except InvalidParameters as exc:
        raise click.ClickException(str(exc))

    if as_json:
        click.echo(result.to_json())
        return

    summary = Table(title="Impact Effects", show_header=False)
    summary.add_column("Quantity", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("Energy", f"{result.impact_energy_j:.3e} J ({result.impact_energy_mt:,.2f} Mt)")
    summary.add_row("Crater diameter", f"{result.crater_km:,.2f} km")
    summary.add_row("Blast radius", f"{result.blast_radius_km:,.2f} km")
    summary.add_row("Thermal radius", f"{result.thermal_radius_km:,.2f} km")
    summary.add_row("Seismic magnitude", f"{result.seismic_magnitude:.1f}")
    summary.add_row("Crater zone population", _fmt_pop(result.crater_population_total))
    summary.add_row("Blast zone population", _fmt_pop(result.blast_population_total))
    summary.add_row("Thermal zone population", _fmt_pop(result.thermal_population_total))
    console.print(summary)

    if result.affected_cities:
        table = Table(title=f"Top {len(result.affected_cities)} Affected Cities")
        table.add_column("City")
        table.add_column("Country")
        table.add_column("Population", justify="right")
        table.add_column("Distance (km)", justify="right")
        table.add_column("Zones")
        for city in result.affected_cities:
            color = "red" if "crater" in city.zones else "yellow" if "blast" in city.zones else "cyan"
            table.add_row(
                f"[{color}]{city.name}[/]",
                city.country or "",
                f"{city.population:,}",
                f"{city.distance_km:.1f}",
                ", ".join(city.zones),
            )
        console.print(table)


@cli.command()
@click.argument("lat", type=float)
@click.argument("lon", type=float)
@click.option("--cities", default=None, help="City dataset path or URL.")
@click.option("--country-affinity", is_flag=True, help="Prefer cities of the guessed country.")
def nearest(lat: float, lon: float, cities: Optional[str], country_affinity: bool):
    """Find the city closest to LAT LON."""
    found = _load_index(cities).nearest_with_distance(lat, lon, country_affinity=country_affinity)
    if found is None:
        click.echo("No city found.")
        return
    city, dist = found
    click.echo(f"{city.label} ({dist:.1f} km)")


@cli.command()
@click.argument("query")
@click.option("--cities", default=None, help="City dataset path or URL.")
@click.option("--limit", default=20, help="Max results to display.")
def search(query: str, cities: Optional[str], limit: int):
    """Search city names (prefix, then word start, then substring)."""
    results = _load_index(cities).search(query, limit)

    table = Table(title=f"Cities matching '{query}'")
    table.add_column("City")
    table.add_column("Country")
    table.add_column("Population", justify="right")
    table.add_column("Lat", justify="right")
    table.add_column("Lon", justify="right")
    for city in results:
        table.add_row(
            city.name, city.country or "", _fmt_pop(city.population),
            f"{city.lat:.3f}", f"{city.lon:.3f}",
        )
    console.print(table)


@cli.command()
def presets():
    """List the built-in impactor presets."""
    table = Table(title="Impactor Presets")
    table.add_column("Name", style="bold")
    table.add_column("Year")
    table.add_column("Diameter (m)", justify="right")
    table.add_column("Velocity (km/s)", justify="right")
    table.add_column("Angle", justify="right")
    table.add_column("Description")
    for preset in IMPACTOR_PRESETS:
        p = preset.parameters
        table.add_row(
            preset.name, preset.year or "", f"{p.diameter_m:,.0f}",
            f"{p.velocity_kms:g}", f"{p.angle_deg:g}°", preset.description,
        )
    console.print(table)
