"""ethicalgates CLI — Typer-based command-line interface.

Provides the ``ethicalgates`` command with subcommands for full audits,
accessibility-only and carbon-only runs, configuration validation and
scaffolding a starter configuration.

All output uses Rich for formatted terminal display.
"""
