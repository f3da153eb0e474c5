"""Quality Gate Evaluator — pass/fail with one reason per broken threshold.

A pure function of the assembled sections: it never raises for a failed
gate, and each threshold is checked independently so a run that breaks
two thresholds reports exactly two reasons.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from ethicalgates.accessibility.wcag import criteria_for_level
from ethicalgates.models.carbon import CombinedCarbonEstimate
from ethicalgates.models.config import QualityGateConfig
from ethicalgates.models.results import (
    AccessibilitySummary,
    CarbonFootprintSummary,
    GateResult,
)
from ethicalgates.models.violations import SectionStatus, Severity

logger = logging.getLogger(__name__)


class CarbonBreach(NamedTuple):
    """A carbon threshold the estimate exceeds."""

    metric: str
    actual: float
    limit: float
    unit: str


def carbon_breaches(
    estimate: CombinedCarbonEstimate, config: QualityGateConfig
) -> list[CarbonBreach]:
    """Every configured carbon threshold that *estimate* exceeds."""
    checks = [
        ("max_carbon_per_page_view", estimate.per_page_view.carbon_grams,
         config.max_carbon_per_page_view, "g"),
        ("max_carbon_per_month_kg", estimate.monthly.carbon_kg,
         config.max_carbon_per_month_kg, "kg"),
        ("max_energy_per_page_view_kwh", estimate.per_page_view.energy_kwh,
         config.max_energy_per_page_view_kwh, "kWh"),
    ]
    return [
        CarbonBreach(metric, actual, limit, unit)
        for metric, actual, limit, unit in checks
        if limit is not None and actual > limit
    ]


_BREACH_LABELS = {
    "max_carbon_per_page_view": "carbon per page view",
    "max_carbon_per_month_kg": "carbon per month",
    "max_energy_per_page_view_kwh": "energy per page view",
}


def _criterion_key(criterion: str) -> tuple[int, ...]:
    return tuple(int(part) for part in criterion.split(".") if part.isdigit())


def unmet_criteria(accessibility: AccessibilitySummary) -> list[str]:
    """Required criteria at the configured level that some target violates."""
    required = criteria_for_level(accessibility.wcag_level)
    found = {
        v.wcag_criterion
        for target in accessibility.targets
        if target.status != SectionStatus.ERRORED
        for v in target.violations
        if v.wcag_criterion in required
    }
    return sorted(found, key=_criterion_key)


def evaluate_gate(
    accessibility: AccessibilitySummary,
    carbon: CarbonFootprintSummary,
    overall_score: int,
    config: QualityGateConfig,
) -> GateResult:
    """Check every threshold and collect a reason for each one broken.

    Parameters
    ----------
    accessibility:
        The assembled accessibility section (counts summed over targets).
    carbon:
        The assembled carbon section.
    overall_score:
        The rounded composite score.
    config:
        Thresholds.

    Returns
    -------
    GateResult
        ``passed`` is true iff ``reasons`` is empty.
    """
    reasons: list[str] = []

    for severity in Severity:
        found = accessibility.counts.get(severity)
        allowed = config.max_violations.get(severity)
        if found > allowed:
            reasons.append(
                f"{severity.value} violations: {found} exceeds maximum of {allowed}"
            )

    if accessibility.status == SectionStatus.ERRORED:
        reasons.append(
            "accessibility: no tool produced results, so compliance cannot be certified"
        )
    elif accessibility.status != SectionStatus.SKIPPED and not accessibility.wcag_level_compliant:
        level = accessibility.wcag_level.value
        criteria = unmet_criteria(accessibility)
        reasons.append(
            f"accessibility: WCAG {level} not met (criteria {', '.join(criteria)})"
            if criteria
            else f"accessibility: WCAG {level} not met"
        )

    if overall_score < config.min_score:
        reasons.append(
            f"overall score {overall_score} is below minimum of {config.min_score:g}"
        )

    if carbon.status == SectionStatus.ERRORED:
        if config.carbon_mandatory:
            reasons.append("carbon: no source produced an estimate")
        else:
            logger.info("Carbon section errored and is optional — skipping carbon thresholds")
    elif carbon.estimate is not None:
        for breach in carbon_breaches(carbon.estimate, config):
            reasons.append(
                f"{_BREACH_LABELS[breach.metric]} {breach.actual:.4g} {breach.unit} "
                f"exceeds maximum of {breach.limit:g} {breach.unit}"
            )

    return GateResult(passed=not reasons, reasons=reasons)
