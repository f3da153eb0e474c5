"""``ethicalgates audit`` — full accessibility and carbon audit.

Runs every enabled accessibility tool and carbon source against every
target, prints the summary and exits 0 (compliant), 1 (error) or
2 (quality gate failed).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ethicalgates.cli.commands._options import (
    ConfigOption,
    FailOnViolationOption,
    FindingsOption,
    OutputOption,
    TargetOption,
    WcagLevelOption,
)
from ethicalgates.cli.runner import run_audit
from ethicalgates.models.violations import WcagLevel


def audit_cmd(
    config: Optional[Path] = ConfigOption,
    findings: Optional[Path] = FindingsOption,
    target: Optional[list[str]] = TargetOption,
    wcag_level: Optional[WcagLevel] = WcagLevelOption,
    fail_on_violation: Optional[bool] = FailOnViolationOption,
    output: Optional[Path] = OutputOption,
) -> None:
    """Run the complete ethical quality gate."""
    run_audit(
        config_path=config,
        findings_path=findings,
        targets=target,
        wcag_level=wcag_level,
        fail_on_violation=fail_on_violation,
        output=output,
    )
