"""``ethicalgates init`` — write a starter configuration file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from ethicalgates.cli.runner import EXIT_ERROR
from ethicalgates.models.config import AuditConfig
from ethicalgates.models.targets import Target

console = Console()


def default_config() -> AuditConfig:
    return AuditConfig(targets=[Target(name="home", url="https://example.com/")])


def init_cmd(
    path: Path = typer.Argument(
        Path("ethicalgates.json"),
        help="Where to write the configuration.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite an existing file.",
    ),
) -> None:
    """Write a configuration with every default spelled out."""
    if path.exists() and not force:
        console.print(f"[bold red]{path} already exists[/bold red] (use --force to overwrite)")
        raise typer.Exit(code=EXIT_ERROR)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_config().model_dump_json(indent=2), encoding="utf-8")
    console.print(f"[green]Wrote[/green] {path}")
