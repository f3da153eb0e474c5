"""Unit tests for the Action Item Generator."""

from __future__ import annotations

import pytest

from ethicalgates.carbon.combiner import combine_estimates
from ethicalgates.models.carbon import CarbonSourceKind
from ethicalgates.models.config import CarbonConfig, QualityGateConfig, ScoringConstants
from ethicalgates.models.results import (
    ActionCategory,
    CarbonRecommendation,
    Effort,
    Priority,
)
from ethicalgates.models.violations import Severity
from ethicalgates.scoring.actions import (
    accessibility_action_items,
    effort_for,
    generate_action_items,
    overall_action_item,
    sustainability_action_items,
)


@pytest.fixture
def constants() -> ScoringConstants:
    return ScoringConstants()


class TestAccessibilityItems:
    def test_ranked_by_weight_times_occurrences(self, make_violation, constants):
        violations = [
            make_violation(Severity.CRITICAL, "1.1.1", message="Images must have alt text"),
            make_violation(Severity.SERIOUS, "1.4.3", occurrences=2),
            make_violation(Severity.SERIOUS, "1.4.3"),
        ]
        items = accessibility_action_items(violations, constants)
        assert [i.title.split(":")[0] for i in items] == ["Fix WCAG 1.4.3", "Fix WCAG 1.1.1"]
        contrast, alt = items
        assert contrast.rank_weight == pytest.approx(15.0)
        assert contrast.occurrences == 3
        assert contrast.priority == Priority.P1
        assert contrast.effort_estimate == Effort.MEDIUM
        assert len(contrast.related_violation_ids) == 2
        assert alt.rank_weight == pytest.approx(10.0)
        assert alt.priority == Priority.P0
        assert alt.effort_estimate == Effort.LOW

    def test_group_priority_follows_worst_severity(self, make_violation, constants):
        violations = [
            make_violation(Severity.MINOR, "2.4.7"),
            make_violation(Severity.CRITICAL, "2.4.7"),
        ]
        [item] = accessibility_action_items(violations, constants)
        assert item.priority == Priority.P0

    def test_violations_without_criterion_group_by_rule(self, make_violation, constants):
        violations = [
            make_violation(Severity.MODERATE, None, rule_ids=("region",)),
            make_violation(Severity.MODERATE, None, rule_ids=("region",)),
        ]
        [item] = accessibility_action_items(violations, constants)
        assert item.title.startswith("Fix region:")

    def test_ids_are_stable(self, make_violation, constants):
        first = accessibility_action_items([make_violation(Severity.SERIOUS, "1.4.3")], constants)
        second = accessibility_action_items([make_violation(Severity.SERIOUS, "1.4.3")], constants)
        assert first[0].id == second[0].id

    def test_no_violations(self, constants):
        assert accessibility_action_items([], constants) == []


class TestEffort:
    @pytest.mark.parametrize("occurrences, effort", [
        (1, Effort.LOW),
        (2, Effort.LOW),
        (3, Effort.MEDIUM),
        (9, Effort.MEDIUM),
        (10, Effort.HIGH),
    ])
    def test_buckets(self, constants, occurrences, effort):
        assert effort_for(occurrences, constants) == effort


class TestSustainabilityItems:
    def _estimate(self, make_estimate, grams: float):
        return combine_estimates(
            [make_estimate(CarbonSourceKind.PERFORMANCE, carbon_grams=grams)],
            CarbonConfig(),
            ScoringConstants(),
        )

    def test_page_weight_item_when_over_budget(self, make_estimate):
        items = sustainability_action_items(self._estimate(make_estimate, 7.5), QualityGateConfig())
        [item] = items
        assert item.title == "Reduce page weight"
        assert item.category == ActionCategory.SUSTAINABILITY
        assert item.priority == Priority.P1
        assert item.rank_weight == pytest.approx(1.5)

    def test_nothing_under_budget(self, make_estimate):
        assert sustainability_action_items(self._estimate(make_estimate, 1.0), QualityGateConfig()) == []

    def test_no_estimate(self):
        assert sustainability_action_items(None, QualityGateConfig()) == []

    def test_sustainability_items_follow_accessibility(self, make_estimate, make_violation, constants):
        items = generate_action_items(
            [make_violation(Severity.MINOR, "1.4.3")],
            self._estimate(make_estimate, 9.0),
            QualityGateConfig(),
            constants,
        )
        assert [i.category for i in items] == [
            ActionCategory.ACCESSIBILITY,
            ActionCategory.SUSTAINABILITY,
        ]


# ---------------------------------------------------------------------------
# Carbon recommendations and the overall item
# ---------------------------------------------------------------------------


def _site_estimate(make_estimate, grams: float):
    return combine_estimates(
        [make_estimate(CarbonSourceKind.PERFORMANCE, carbon_grams=grams)],
        CarbonConfig(),
        ScoringConstants(),
    )


def _recommendation(title: str, priority: Priority, percentage: float = 20.0, grams: float = 8.0):
    return CarbonRecommendation(
        area="frontend",
        title=title,
        description=f"{title}.",
        priority=priority,
        saving_percentage=percentage,
        saving_grams=grams * percentage / 100.0,
        effort=Effort.MEDIUM,
        timeframe="1-2 weeks",
    )


class TestRecommendationItems:
    def test_urgent_recommendations_follow_threshold_items(self, make_estimate):
        recommendations = [
            _recommendation("Optimize images", Priority.P1),
            _recommendation("Improve page load speed", Priority.P1, percentage=25.0),
            _recommendation("Improve caching", Priority.P2, percentage=15.0),
        ]
        items = sustainability_action_items(
            _site_estimate(make_estimate, 8.0), QualityGateConfig(), recommendations
        )
        assert [i.title for i in items] == [
            "Reduce page weight",
            "Optimize images",
            "Improve page load speed",
        ]
        assert "Potential saving: 1.6 g CO2 per page view (20%)" in items[1].description
        assert items[1].effort_estimate == Effort.MEDIUM

    def test_at_most_three_distinct_recommendations(self, make_estimate):
        recommendations = [
            _recommendation("Optimize images", Priority.P0),
            _recommendation("Optimize images", Priority.P1),
            _recommendation("Improve page load speed", Priority.P1),
            _recommendation("Trim fonts", Priority.P1),
            _recommendation("Drop autoplay video", Priority.P1),
        ]
        items = sustainability_action_items(
            _site_estimate(make_estimate, 8.0), QualityGateConfig(), recommendations
        )
        assert [i.title for i in items[1:]] == [
            "Optimize images",
            "Improve page load speed",
            "Trim fonts",
        ]
        assert items[1].priority == Priority.P0

    def test_no_recommendation_items_within_budget(self, make_estimate):
        items = sustainability_action_items(
            _site_estimate(make_estimate, 1.0),
            QualityGateConfig(),
            [_recommendation("Optimize images", Priority.P1)],
        )
        assert items == []


class TestOverallItem:
    def test_below_threshold(self, constants):
        item = overall_action_item(72, constants)
        assert item.title == "Improve overall ethical score"
        assert item.category == ActionCategory.OVERALL
        assert item.priority == Priority.P2
        assert item.effort_estimate == Effort.HIGH
        assert "72" in item.description

    def test_at_threshold_is_not_flagged(self, constants):
        assert overall_action_item(80, constants) is None

    def test_custom_threshold(self):
        assert overall_action_item(85, ScoringConstants(overall_action_threshold=90)) is not None

    def test_overall_item_comes_last(self, make_estimate, make_violation, constants):
        items = generate_action_items(
            [make_violation(Severity.CRITICAL, "1.1.1")],
            _site_estimate(make_estimate, 9.0),
            QualityGateConfig(),
            constants,
            overall_score=60,
        )
        assert [i.category for i in items] == [
            ActionCategory.ACCESSIBILITY,
            ActionCategory.SUSTAINABILITY,
            ActionCategory.OVERALL,
        ]

    def test_omitted_without_a_score(self, make_violation, constants):
        items = generate_action_items(
            [make_violation(Severity.CRITICAL, "1.1.1")], None, QualityGateConfig(), constants
        )
        assert [i.category for i in items] == [ActionCategory.ACCESSIBILITY]
