"""Typer options shared by the audit commands."""

from __future__ import annotations

import typer

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to the JSON audit configuration.",
)

FindingsOption = typer.Option(
    None,
    "--findings",
    "-f",
    help="Recorded tool output (JSON) to audit.",
)

TargetOption = typer.Option(
    None,
    "--target",
    "-t",
    help="Target as NAME=URL or a bare URL; repeatable. Replaces configured targets.",
)

WcagLevelOption = typer.Option(
    None,
    "--wcag-level",
    help="WCAG conformance level to check (A, AA, AAA).",
    case_sensitive=False,
)

FailOnViolationOption = typer.Option(
    None,
    "--fail-on-violation/--no-fail-on-violation",
    help="Exit with code 2 when the quality gate fails.",
)

OutputOption = typer.Option(
    None,
    "--output",
    "-o",
    help="Write the EthicalAuditResult JSON to this path.",
)
