"""CLI entry point: offline analysis of a CGM readings export."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import click

from .analytics.outcome import find_nearest_reading
from .analytics.time_in_range import calculate_time_in_range
from .core.config import Settings, load_settings
from .core.errors import GlyloopError
from .core.models import GlucoseReading
from .domain.value_objects import TirRange
from .observability.logger import correlation_scope, get_logger, setup_logging


def parse_readings(data: Any) -> list[GlucoseReading]:
    """Readings from a vendor export.

    Accepts a bare list or ``{"records": [...]}``; each record needs
    ``systemTime`` and ``value``, ``trend`` is optional.
    """
    records = data.get("records", []) if isinstance(data, dict) else data
    return [
        GlucoseReading(
            system_time=datetime.fromisoformat(rec["systemTime"]),
            value_mg_dl=int(rec["value"]),
            trend=rec.get("trend"),
        )
        for rec in records
    ]


def _load(path: str) -> list[GlucoseReading]:
    try:
        with open(path) as f:
            return parse_readings(json.load(f))
    except KeyError as exc:
        raise click.BadParameter(f"record without {exc}", param_hint="READINGS") from exc
    except (TypeError, ValueError) as exc:
        # JSONDecodeError and pydantic ValidationError are ValueErrors
        raise click.BadParameter(str(exc), param_hint="READINGS") from exc


@click.group()
@click.option("--config", default=None, help="TOML config file path")
@click.pass_context
def main(ctx: click.Context, config: str | None) -> None:
    """Glyloop glucose analytics."""
    settings: Settings = load_settings(config) if config else Settings()
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    ctx.with_resource(correlation_scope(command=ctx.invoked_subcommand))
    ctx.obj = settings


@main.command()
@click.argument("readings", type=click.Path(exists=True, dir_okay=False))
@click.option("--lower", type=int, default=None, help="Lower bound (mg/dL)")
@click.option("--upper", type=int, default=None, help="Upper bound (mg/dL)")
@click.pass_obj
def tir(settings: Settings, readings: str, lower: int | None, upper: int | None) -> None:
    """Time in range over every reading in READINGS."""
    log = get_logger("glyloop.cli")
    try:
        tir_range = TirRange.create(
            settings.tir.default_lower if lower is None else lower,
            settings.tir.default_upper if upper is None else upper,
        )
    except GlyloopError as exc:
        raise click.BadParameter(exc.message) from exc

    stats = calculate_time_in_range(_load(readings), tir_range)
    log.info("tir_computed", file=Path(readings).name, total=stats.total)
    click.echo(
        f"{stats.percentage}% in {tir_range} "
        f"({stats.in_range}/{stats.total}; below {stats.below}, above {stats.above})"
    )


@main.command()
@click.argument("readings", type=click.Path(exists=True, dir_okay=False))
@click.option("--meal-time", required=True, help="Meal time, ISO-8601 with offset")
@click.pass_obj
def outcome(settings: Settings, readings: str, meal_time: str) -> None:
    """Reading nearest to the post-meal target time."""
    meal = datetime.fromisoformat(meal_time)
    if meal.tzinfo is None:
        raise click.BadParameter("meal time must include a UTC offset")
    target = meal + timedelta(minutes=settings.outcome.offset_minutes)
    tolerance = timedelta(minutes=settings.outcome.tolerance_minutes)
    window = [
        r for r in _load(readings)
        if target - tolerance <= r.system_time <= target + tolerance
    ]
    nearest = find_nearest_reading(window, target)
    if nearest is None:
        click.echo(f"No reading available near {target.isoformat()}")
        return
    click.echo(f"{nearest.value_mg_dl} mg/dL at {nearest.system_time.isoformat()}")


if __name__ == "__main__":
    main()
