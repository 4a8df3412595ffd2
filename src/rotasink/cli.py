"""Typer CLI: check a rotation config, or pipe stdin into rotating files."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rotasink import __version__

if TYPE_CHECKING:
    from rotasink.config import RotationConfig

app = typer.Typer(
    name="rotasink",
    help="Time and size based rotating file sink.",
    no_args_is_help=True,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"rotasink v{__version__}")
        raise typer.Exit()


def _parse_now(now: str | None) -> datetime:
    if not now:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(now)
    except ValueError:
        console.print(f"[red]Invalid --now value: {now!r} (expected ISO 8601)[/red]")
        raise typer.Exit(1)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _load(config_path: Path) -> RotationConfig:
    from rotasink.config import RotationConfig, load_config, validate_config

    if not config_path.exists():
        console.print(f"[red]Config not found: {config_path}[/red]")
        raise typer.Exit(1)
    raw = load_config(config_path)
    errors = validate_config(raw)
    if errors:
        for e in errors:
            console.print(f"  [red]Config error: {e}[/red]")
        raise typer.Exit(1)
    return RotationConfig.from_dict(raw)


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version.", callback=_version_callback, is_eager=True
    ),
) -> None:
    """rotasink - rotating output files for log sinks."""


@app.command()
def check(
    config_path: Path = typer.Argument(..., help="JSON or YAML rotation config"),
    now: str = typer.Option(None, "--now", help="Pretend the current time is this ISO timestamp"),
    count: int = typer.Option(3, "--count", "-n", help="Number of deadlines to preview"),
) -> None:
    """Validate a config and preview its deadlines and rotated names."""
    from rotasink.clock import first_deadline, next_deadline, to_calendar
    from rotasink.naming import append_index_suffix, time_bucket_name

    config = _load(config_path)
    current = _parse_now(now)

    console.print(Panel("[bold]rotasink check[/bold]", style="blue"))
    settings = Table(title="Settings", show_header=False)
    settings.add_column("Key", style="cyan")
    settings.add_column("Value")
    for key, value in config.as_dict().items():
        settings.add_row(key, str(value))
    console.print(settings)

    size_bucket = config.base_path
    if config.when is None:
        console.print("  Time rotation: [yellow]disabled[/yellow]")
    else:
        hour, minute = config.at_time
        deadlines = [
            first_deadline(current, config.when, config.interval, config.timezone, hour, minute)
        ]
        for _ in range(max(count, 1) - 1):
            deadlines.append(next_deadline(deadlines[-1], config.when, config.interval))

        table = Table(title="Upcoming rotations")
        table.add_column("#", width=4)
        table.add_column("Deadline")
        for i, deadline in enumerate(deadlines, start=1):
            table.add_row(str(i), to_calendar(deadline, config.timezone).isoformat())
        console.print(table)

        stamped = time_bucket_name(config.base_path, current, config.when, config.timezone)
        console.print(f"  Time-rotated name: [cyan]{stamped}[/cyan]")
        size_bucket = stamped

    if config.max_bytes > 0:
        console.print(
            f"  Size-rotated name: [cyan]{append_index_suffix(size_bucket, 1)}[/cyan]"
            f" (after {config.max_bytes} bytes)"
        )
    console.print("[green]Config is valid.[/green]")


@app.command()
def pipe(
    config_path: Path = typer.Argument(..., help="JSON or YAML rotation config"),
    flush: bool = typer.Option(True, "--flush/--no-flush", help="Flush after every line"),
) -> None:
    """Copy stdin line by line into rotating files."""
    from rotasink.engine import RotationEngine
    from rotasink.errors import RotationError

    config = _load(config_path)
    stdin = typer.get_binary_stream("stdin")
    lines = 0
    try:
        with RotationEngine(config) as engine:
            for line in stdin:
                engine.write(line, datetime.now(timezone.utc), flush=flush)
                lines += 1
            retained = len(engine.retained)
    except RotationError as exc:
        console.print(f"[red]Write failed after {lines} lines: {exc}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]{lines} lines written[/green], {retained} rotated files retained")
