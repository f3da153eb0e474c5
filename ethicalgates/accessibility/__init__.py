"""Accessibility half of the audit: normalize tool findings, then score them."""

from ethicalgates.accessibility.normalizer import (
    TOOL_MAPPERS,
    deduplicate,
    map_result,
    normalize_findings,
    normalize_results,
    trigram_similarity,
)
from ethicalgates.accessibility.scorer import (
    is_level_compliant,
    overall_accessibility_score,
    score_target,
    score_violations,
)

__all__ = [
    "TOOL_MAPPERS",
    "deduplicate",
    "map_result",
    "normalize_findings",
    "normalize_results",
    "trigram_similarity",
    "is_level_compliant",
    "overall_accessibility_score",
    "score_target",
    "score_violations",
]
