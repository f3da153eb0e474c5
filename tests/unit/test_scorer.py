"""Unit tests for the Accessibility Scorer."""

from __future__ import annotations

import pytest

from ethicalgates.accessibility.scorer import (
    is_level_compliant,
    overall_accessibility_score,
    score_target,
    score_violations,
)
from ethicalgates.accessibility.wcag import criteria_for_level
from ethicalgates.models.config import ScoringConstants
from ethicalgates.models.violations import SectionStatus, Severity, WcagLevel

URL = "https://example.com/"


@pytest.fixture
def constants() -> ScoringConstants:
    return ScoringConstants()


class TestScoreViolations:
    def test_no_violations_is_perfect(self, constants):
        assert score_violations([], constants) == 100.0

    def test_one_of_each_severity(self, constants, make_violation):
        violations = [make_violation(severity=s) for s in Severity]
        assert score_violations(violations, constants) == pytest.approx(82.5)

    def test_clamped_at_zero(self, constants, make_violation):
        violations = [make_violation(severity=Severity.CRITICAL) for _ in range(11)]
        assert score_violations(violations, constants) == 0.0

    def test_custom_weights(self, make_violation):
        constants = ScoringConstants(severity_weights={
            Severity.CRITICAL: 20.0,
            Severity.SERIOUS: 5.0,
            Severity.MODERATE: 2.0,
            Severity.MINOR: 0.5,
        })
        assert score_violations([make_violation(severity=Severity.CRITICAL)], constants) == 80.0


class TestMonotonicity:
    @pytest.mark.parametrize("severity", list(Severity))
    def test_adding_a_violation_never_raises_the_score(self, constants, make_violation, severity):
        violations = [make_violation(severity=Severity.MINOR) for _ in range(3)]
        before = score_violations(violations, constants)
        after = score_violations(violations + [make_violation(severity=severity)], constants)
        assert after <= before

    def test_monotone_down_to_zero(self, constants, make_violation):
        violations = []
        previous = score_violations(violations, constants)
        for _ in range(30):
            violations.append(make_violation(severity=Severity.SERIOUS))
            current = score_violations(violations, constants)
            assert current <= previous
            previous = current
        assert previous == 0.0


class TestWcagConformance:
    def test_levels_are_cumulative(self):
        a = criteria_for_level(WcagLevel.A)
        aa = criteria_for_level(WcagLevel.AA)
        aaa = criteria_for_level(WcagLevel.AAA)
        assert a < aa < aaa
        assert "1.1.1" in a
        assert "1.4.3" in aa and "1.4.3" not in a
        assert "1.4.6" in aaa and "1.4.6" not in aa

    def test_aa_violation_fails_aa(self, make_violation):
        assert is_level_compliant([make_violation(wcag_criterion="1.4.3")], WcagLevel.AA) is False

    def test_aa_violation_passes_a(self, make_violation):
        assert is_level_compliant([make_violation(wcag_criterion="1.4.3")], WcagLevel.A) is True

    def test_aaa_only_violation(self, make_violation):
        violations = [make_violation(wcag_criterion="1.4.6")]
        assert is_level_compliant(violations, WcagLevel.AA) is True
        assert is_level_compliant(violations, WcagLevel.AAA) is False

    def test_violation_without_criterion_does_not_break_conformance(self, make_violation):
        assert is_level_compliant([make_violation(wcag_criterion=None)], WcagLevel.AAA) is True


class TestScoreTarget:
    def test_builds_result(self, constants, make_violation):
        violations = [
            make_violation(severity=Severity.CRITICAL, wcag_criterion="1.1.1"),
            make_violation(severity=Severity.MINOR),
        ]
        result = score_target(
            "home", URL, violations, WcagLevel.AA, constants, tools_run=["axe"]
        )
        assert result.score == pytest.approx(89.5)
        assert result.counts.critical == 1
        assert result.counts.minor == 1
        assert result.wcag_level_compliant is False
        assert result.status == SectionStatus.OK
        assert result.tools_run == ["axe"]


class TestOverallAccessibilityScore:
    def _result(self, name: str, score_violations_: list, constants, status=SectionStatus.OK):
        return score_target(name, URL, score_violations_, WcagLevel.AA, constants, status=status)

    def test_equal_weight_mean(self, constants, make_violation):
        results = [
            self._result("a", [], constants),
            self._result("b", [make_violation(severity=Severity.CRITICAL)], constants),
        ]
        assert overall_accessibility_score(results) == pytest.approx(95.0)

    def test_configured_weights(self, constants, make_violation):
        results = [
            self._result("a", [], constants),
            self._result("b", [make_violation(severity=Severity.CRITICAL)], constants),
        ]
        assert overall_accessibility_score(results, {"a": 3.0}) == pytest.approx(97.5)

    def test_errored_targets_are_excluded(self, constants, make_violation):
        results = [
            self._result("a", [make_violation(severity=Severity.SERIOUS)], constants),
            self._result("b", [], constants, status=SectionStatus.ERRORED),
        ]
        assert overall_accessibility_score(results) == pytest.approx(95.0)

    def test_no_data_is_none(self, constants):
        results = [self._result("a", [], constants, status=SectionStatus.ERRORED)]
        assert overall_accessibility_score(results) is None
        assert overall_accessibility_score([]) is None
