"""Command-line interface for sector_allocation."""

import logging
from pathlib import Path
from typing import Annotated

import typer

from sector_allocation import __version__

app = typer.Typer(
    name="sector_allocation",
    help="Share allocation of sector demand among competing subsectors",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sector_allocation version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Share allocation of sector demand among competing subsectors."""


@app.command()
def run(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Scenario YAML file. Defaults to config/scenario.yml.",
        ),
    ] = None,
    periods: Annotated[
        int | None,
        typer.Option(
            "--periods",
            "-p",
            help="Number of periods to run. Defaults to all model periods.",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level: DEBUG, INFO, WARNING or ERROR.",
        ),
    ] = "WARNING",
) -> None:
    """Run a scenario and print output, price and shares per sector."""
    from sector_allocation.sectors.errors import SectorAllocationError
    from sector_allocation.sectors.model import Simulation

    level = log_level.upper()
    if level not in logging.getLevelNamesMapping():
        typer.echo(f"Error: unknown log level {log_level}.", err=True)
        raise typer.Exit(code=1)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if config is not None and not config.is_file():
        typer.echo(f"Error: {config} is not a file.", err=True)
        raise typer.Exit(code=1)

    try:
        sim = Simulation.from_config(config)
        result = sim.run(periods)
    except (SectorAllocationError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not result.records:
        typer.echo("No sectors to run.")
        raise typer.Exit()

    for record in result.records:
        shares = ", ".join(f"{name}={share:.3f}" for name, share in record.shares.items())
        flag = "" if record.calibrated else "  [not calibrated]"
        typer.echo(
            f"{record.year} {record.sector}: output={record.output:.4g} "
            f"price={record.price:.4g} co2={record.co2:.4g} ({shares}){flag}"
        )
    if result.diagnostics:
        typer.echo(f"{len(result.diagnostics)} diagnostic(s) recorded.")


@app.command()
def describe(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Scenario YAML file. Defaults to config/scenario.yml.",
        ),
    ] = None,
) -> None:
    """List the sectors and subsectors of a scenario."""
    from sector_allocation.sectors.config import load_config

    if config is not None and not config.is_file():
        typer.echo(f"Error: {config} is not a file.", err=True)
        raise typer.Exit(code=1)

    cfg = load_config(config)
    region = cfg.region
    time = cfg.model_time
    typer.echo(
        f"Region {region.name}: {time.periods} periods from {time.start_year} "
        f"every {time.time_step} years"
    )
    for sector in region.sectors:
        unit = f" [{sector.unit}]" if sector.unit else ""
        typer.echo(f"  {sector.name}{unit}")
        for sub in sector.subsectors:
            flags = []
            if _any_positive(sub.fixed_output):
                flags.append("fixed output")
            if _any_below_one(sub.capacity_limit):
                flags.append("capacity limit")
            if _any_positive(sub.calibrated_output):
                flags.append("calibrated")
            suffix = f" ({', '.join(flags)})" if flags else ""
            typer.echo(f"    - {sub.name}{suffix}")


def _values(value: float | tuple[float, ...]) -> tuple[float, ...]:
    return value if isinstance(value, tuple) else (value,)


def _any_positive(value: float | tuple[float, ...]) -> bool:
    return any(v > 0 for v in _values(value))


def _any_below_one(value: float | tuple[float, ...]) -> bool:
    return any(v < 1 for v in _values(value))
