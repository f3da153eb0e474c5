"""Score Aggregator — carbon score, composite score and letter grade.

The composite is the weighted mean of the sections that were actually
evaluated (accessibility 0.6, carbon 0.4 by default), rounded half-up.
With both sections present that is exactly ``round(0.6a + 0.4c)``; a
missing section has its weight redistributed rather than counted as zero.
"""

from __future__ import annotations

import math

from ethicalgates.models.config import ScoringConstants
from ethicalgates.models.results import Grade

# Lower bound (inclusive) of each grade, highest first.
GRADE_THRESHOLDS: list[tuple[int, Grade]] = [
    (97, Grade.A_PLUS),
    (93, Grade.A),
    (90, Grade.B_PLUS),
    (87, Grade.B),
    (83, Grade.C_PLUS),
    (80, Grade.C),
    (70, Grade.D),
    (0, Grade.F),
]


def round_half_up(value: float) -> int:
    """``2.5 -> 3`` (Python's ``round`` would give 2)."""
    return int(math.floor(value + 0.5))


def carbon_score(grams_per_page_view: float, budget_grams: float) -> float:
    """100 at or below half the budget, falling linearly to 0 at 1.5x."""
    if budget_grams <= 0:
        return 100.0 if grams_per_page_view <= 0 else 0.0
    low = 0.5 * budget_grams
    high = 1.5 * budget_grams
    if grams_per_page_view <= low:
        return 100.0
    if grams_per_page_view >= high:
        return 0.0
    return 100.0 * (high - grams_per_page_view) / (high - low)


def overall_score(
    accessibility: float | None,
    carbon: float | None,
    constants: ScoringConstants,
) -> int:
    """Weighted composite over the evaluated sections.

    Returns 0 when neither section produced a score.
    """
    parts = [
        (score, weight)
        for score, weight in (
            (accessibility, constants.accessibility_weight),
            (carbon, constants.carbon_weight),
        )
        if score is not None and weight > 0
    ]
    total_weight = sum(weight for _, weight in parts)
    if not parts or total_weight <= 0:
        return 0
    mean = sum(score * weight for score, weight in parts) / total_weight
    return max(0, min(100, round_half_up(mean)))


def grade_for(score: int) -> Grade:
    for floor_, grade in GRADE_THRESHOLDS:
        if score >= floor_:
            return grade
    return Grade.F
