"""``ethicalgates carbon`` — carbon footprint section only."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ethicalgates.cli.commands._options import (
    ConfigOption,
    FailOnViolationOption,
    FindingsOption,
    OutputOption,
    TargetOption,
)
from ethicalgates.cli.runner import run_audit


def carbon_cmd(
    config: Optional[Path] = ConfigOption,
    findings: Optional[Path] = FindingsOption,
    target: Optional[list[str]] = TargetOption,
    fail_on_violation: Optional[bool] = FailOnViolationOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Estimate the carbon footprint of every target.

    Transfer sizes are read from ``--findings`` when recorded; otherwise
    the configured default page size is assumed.
    """
    run_audit(
        config_path=config,
        findings_path=findings,
        targets=target,
        wcag_level=None,
        fail_on_violation=fail_on_violation,
        output=output,
        accessibility=False,
    )
