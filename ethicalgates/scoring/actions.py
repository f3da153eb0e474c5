"""Action Item Generator — ranked remediation work from audit findings.

Accessibility items group violations by WCAG criterion (or the tool rule id
when a finding has no criterion) and rank groups by
``max severity weight x occurrences``.  Sustainability items come from a
static table keyed by the carbon threshold that was exceeded, followed by
the most urgent carbon recommendations while any threshold is exceeded.
A low overall score adds one closing item covering both sections.
"""

from __future__ import annotations

from ethicalgates.core.hasher import short_id
from ethicalgates.models.carbon import CombinedCarbonEstimate
from ethicalgates.models.config import QualityGateConfig, ScoringConstants
from ethicalgates.models.results import (
    ActionCategory,
    ActionItem,
    CarbonRecommendation,
    Effort,
    Priority,
)
from ethicalgates.models.violations import Severity, Violation, max_severity
from ethicalgates.scoring.gate import carbon_breaches

SEVERITY_PRIORITY: dict[Severity, Priority] = {
    Severity.CRITICAL: Priority.P0,
    Severity.SERIOUS: Priority.P1,
    Severity.MODERATE: Priority.P2,
    Severity.MINOR: Priority.P3,
}

# Exceeded carbon threshold -> (title, description, priority, effort).
CARBON_RECOMMENDATIONS: dict[str, tuple[str, str, Priority, Effort]] = {
    "max_carbon_per_page_view": (
        "Reduce page weight",
        "Optimize and lazy-load images, compress text assets and drop unused "
        "JavaScript to cut the bytes transferred per page view.",
        Priority.P1,
        Effort.MEDIUM,
    ),
    "max_carbon_per_month_kg": (
        "Improve caching and CDN coverage",
        "Serve static assets from a CDN with long cache lifetimes so repeat "
        "views skip the origin.",
        Priority.P2,
        Effort.MEDIUM,
    ),
    "max_energy_per_page_view_kwh": (
        "Right-size infrastructure",
        "Reduce idle capacity, enable auto-scaling and prefer regions or "
        "providers with a lower-carbon grid.",
        Priority.P2,
        Effort.HIGH,
    ),
}

# Only these recommendation priorities become action items.
URGENT_PRIORITIES = frozenset({Priority.P0, Priority.P1})
MAX_RECOMMENDATION_ITEMS = 3


def effort_for(occurrences: int, constants: ScoringConstants) -> Effort:
    if occurrences <= constants.effort_low_max_occurrences:
        return Effort.LOW
    if occurrences <= constants.effort_medium_max_occurrences:
        return Effort.MEDIUM
    return Effort.HIGH


def _group_key(violation: Violation) -> str:
    if violation.wcag_criterion:
        return violation.wcag_criterion
    if violation.rule_ids:
        return violation.rule_ids[0]
    return violation.message


def _accessibility_item(
    key: str, group: list[Violation], constants: ScoringConstants
) -> ActionItem:
    worst = max_severity(*(v.severity for v in group))
    occurrences = sum(v.occurrences for v in group)
    pages = sorted({v.target_url for v in group})
    tools = sorted({t for v in group for t in v.source_tools})
    message = group[0].message
    title = (
        f"Fix WCAG {key}: {message}" if group[0].wcag_criterion else f"Fix {key}: {message}"
    )
    return ActionItem(
        id=short_id("ai", {"category": ActionCategory.ACCESSIBILITY.value, "key": key}),
        title=title,
        description=(
            f"{occurrences} occurrence(s) on {len(pages)} page(s), "
            f"reported by {', '.join(tools)}."
        ),
        category=ActionCategory.ACCESSIBILITY,
        priority=SEVERITY_PRIORITY[worst],
        effort_estimate=effort_for(occurrences, constants),
        related_violation_ids=sorted(v.id for v in group),
        occurrences=occurrences,
        rank_weight=constants.weight_of(worst) * occurrences,
    )


def accessibility_action_items(
    violations: list[Violation], constants: ScoringConstants
) -> list[ActionItem]:
    """One item per criterion group, highest rank weight first."""
    groups: dict[str, list[Violation]] = {}
    for violation in violations:
        groups.setdefault(_group_key(violation), []).append(violation)
    items = [_accessibility_item(key, group, constants) for key, group in groups.items()]
    return sorted(items, key=lambda item: (-item.rank_weight, item.id))


def _recommendation_item(recommendation: CarbonRecommendation) -> ActionItem:
    return ActionItem(
        id=short_id("ai", {
            "category": ActionCategory.SUSTAINABILITY.value,
            "key": recommendation.title,
        }),
        title=recommendation.title,
        description=(
            f"{recommendation.description} Potential saving: "
            f"{recommendation.saving_grams:.3g} g CO2 per page view "
            f"({recommendation.saving_percentage:g}%) over {recommendation.timeframe}."
        ),
        category=ActionCategory.SUSTAINABILITY,
        priority=recommendation.priority,
        effort_estimate=recommendation.effort,
        rank_weight=recommendation.saving_grams,
    )


def sustainability_action_items(
    estimate: CombinedCarbonEstimate | None,
    config: QualityGateConfig,
    recommendations: list[CarbonRecommendation] | None = None,
) -> list[ActionItem]:
    """One item per exceeded carbon threshold.

    While any threshold is exceeded, up to three P0/P1 *recommendations*
    follow the threshold items, one per distinct title.
    """
    if estimate is None:
        return []
    breaches = carbon_breaches(estimate, config)
    items: list[ActionItem] = []
    for breach in breaches:
        title, description, priority, effort = CARBON_RECOMMENDATIONS[breach.metric]
        items.append(ActionItem(
            id=short_id("ai", {
                "category": ActionCategory.SUSTAINABILITY.value,
                "key": breach.metric,
            }),
            title=title,
            description=(
                f"{description} Current {breach.actual:.4g} {breach.unit}, "
                f"limit {breach.limit:g} {breach.unit}."
            ),
            category=ActionCategory.SUSTAINABILITY,
            priority=priority,
            effort_estimate=effort,
            rank_weight=breach.actual / breach.limit if breach.limit > 0 else 0.0,
        ))
    if not breaches:
        return items

    titles: set[str] = set()
    for recommendation in recommendations or []:
        if len(titles) == MAX_RECOMMENDATION_ITEMS:
            break
        if recommendation.priority not in URGENT_PRIORITIES or recommendation.title in titles:
            continue
        titles.add(recommendation.title)
        items.append(_recommendation_item(recommendation))
    return items


def overall_action_item(overall_score: int, constants: ScoringConstants) -> ActionItem | None:
    """A single item covering both sections when the overall score is low."""
    if overall_score >= constants.overall_action_threshold:
        return None
    return ActionItem(
        id=short_id("ai", {"category": ActionCategory.OVERALL.value, "key": "overall"}),
        title="Improve overall ethical score",
        description=(
            f"The overall score is {overall_score}, below "
            f"{constants.overall_action_threshold:g}. Focus on both accessibility "
            "and sustainability improvements."
        ),
        category=ActionCategory.OVERALL,
        priority=Priority.P2,
        effort_estimate=Effort.HIGH,
    )


def generate_action_items(
    violations: list[Violation],
    estimate: CombinedCarbonEstimate | None,
    gate_config: QualityGateConfig,
    constants: ScoringConstants,
    *,
    recommendations: list[CarbonRecommendation] | None = None,
    overall_score: int | None = None,
) -> list[ActionItem]:
    """Ranked accessibility items, then sustainability items, then the
    overall item when *overall_score* is below the configured threshold.
    """
    items = accessibility_action_items(violations, constants) + sustainability_action_items(
        estimate, gate_config, recommendations
    )
    if overall_score is not None:
        overall = overall_action_item(overall_score, constants)
        if overall is not None:
            items.append(overall)
    return items
