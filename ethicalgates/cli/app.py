"""Main Typer application — imports and registers all CLI commands.

Entry point: ``ethicalgates`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from ethicalgates import __version__
from ethicalgates.cli.commands.accessibility import accessibility_cmd
from ethicalgates.cli.commands.audit import audit_cmd
from ethicalgates.cli.commands.carbon import carbon_cmd
from ethicalgates.cli.commands.init import init_cmd
from ethicalgates.cli.commands.validate import validate_cmd

app = typer.Typer(
    name="ethicalgates",
    help="ethicalgates: accessibility and carbon quality gate for CI/CD.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="audit", help="Run accessibility and carbon audits.")(audit_cmd)
app.command(name="accessibility", help="Run the accessibility audit only.")(accessibility_cmd)
app.command(name="carbon", help="Estimate the carbon footprint only.")(carbon_cmd)
app.command(name="validate", help="Validate an audit configuration.")(validate_cmd)
app.command(name="init", help="Write a starter configuration file.")(init_cmd)


@app.command(name="version", help="Show the installed version.")
def version_cmd() -> None:
    typer.echo(__version__)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
