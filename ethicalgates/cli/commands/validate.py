"""``ethicalgates validate`` — check a configuration without auditing."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ethicalgates.cli.commands._options import ConfigOption, TargetOption
from ethicalgates.cli.runner import EXIT_ERROR, load_config, report_configuration_error
from ethicalgates.core.errors import ConfigurationError
from ethicalgates.core.validation import validate_audit_config

console = Console()


def validate_cmd(
    config: Optional[Path] = ConfigOption,
    target: Optional[list[str]] = TargetOption,
) -> None:
    """Validate the audit configuration and list its targets."""
    try:
        audit_config = load_config(config, targets=target)
        validate_audit_config(audit_config)
    except ConfigurationError as exc:
        report_configuration_error(exc)
        raise typer.Exit(code=EXIT_ERROR) from exc

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Target", style="cyan")
    table.add_column("URL")
    for t in audit_config.targets:
        table.add_row(t.name, t.url)

    gates = audit_config.quality_gates
    console.print(table)
    console.print(
        Panel(
            "\n".join([
                "[bold green]Configuration is valid.[/bold green]",
                "",
                f"[bold]WCAG level:[/bold]      {audit_config.accessibility.wcag_level.value}",
                f"[bold]Tools:[/bold]           {', '.join(audit_config.accessibility.enabled_tools())}",
                f"[bold]Carbon methods:[/bold]  "
                + (", ".join(k.value for k in audit_config.carbon.methods.enabled()) or "none"),
                f"[bold]Min score:[/bold]       {gates.min_score:g}",
                f"[bold]Carbon budget:[/bold]   {audit_config.carbon.budget_grams_per_page_view:g} g/page view",
            ]),
            title="[bold]ethicalgates[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
