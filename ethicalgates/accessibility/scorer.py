"""Accessibility Scorer — per-target score and WCAG conformance.

``score = clamp(100 - sum(count x severity weight), 0, 100)``.  Weights are
non-negative, so adding a violation can never raise a score.
"""

from __future__ import annotations

from ethicalgates.accessibility.wcag import criteria_for_level
from ethicalgates.models.config import ScoringConstants
from ethicalgates.models.violations import (
    AccessibilityResult,
    SectionStatus,
    SeverityCounts,
    Violation,
    WcagLevel,
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def score_violations(
    violations: list[Violation], constants: ScoringConstants
) -> float:
    penalty = sum(constants.weight_of(v.severity) for v in violations)
    return _clamp(100.0 - penalty, 0.0, 100.0)


def is_level_compliant(violations: list[Violation], level: WcagLevel) -> bool:
    """True iff no violation hits a criterion required at *level*."""
    required = criteria_for_level(level)
    return not any(v.wcag_criterion in required for v in violations)


def score_target(
    target_name: str,
    target_url: str,
    violations: list[Violation],
    level: WcagLevel,
    constants: ScoringConstants,
    *,
    status: SectionStatus = SectionStatus.OK,
    tools_run: list[str] | None = None,
    tools_failed: list[str] | None = None,
) -> AccessibilityResult:
    """Build the ``AccessibilityResult`` for one target."""
    return AccessibilityResult(
        target_name=target_name,
        target_url=target_url,
        violations=violations,
        score=score_violations(violations, constants),
        wcag_level_compliant=is_level_compliant(violations, level),
        counts=SeverityCounts.from_violations(violations),
        status=status,
        tools_run=tools_run or [],
        tools_failed=tools_failed or [],
    )


def overall_accessibility_score(
    results: list[AccessibilityResult],
    weights: dict[str, float] | None = None,
) -> float | None:
    """Weighted mean of per-target scores; errored targets are excluded.

    Targets default to weight 1.0.  Returns ``None`` when no target
    produced data.
    """
    weights = weights or {}
    scored = [r for r in results if r.status != SectionStatus.ERRORED]
    total_weight = sum(weights.get(r.target_name, 1.0) for r in scored)
    if not scored or total_weight <= 0:
        return None
    weighted = sum(r.score * weights.get(r.target_name, 1.0) for r in scored)
    return weighted / total_weight
