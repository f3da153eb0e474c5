"""Composite scoring, the quality gate and action item generation."""

from ethicalgates.scoring.actions import generate_action_items
from ethicalgates.scoring.aggregator import (
    GRADE_THRESHOLDS,
    carbon_score,
    grade_for,
    overall_score,
    round_half_up,
)
from ethicalgates.scoring.gate import evaluate_gate

__all__ = [
    "GRADE_THRESHOLDS",
    "carbon_score",
    "evaluate_gate",
    "generate_action_items",
    "grade_for",
    "overall_score",
    "round_half_up",
]
