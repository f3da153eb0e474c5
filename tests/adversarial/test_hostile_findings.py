"""Adversarial tests — malformed and hostile tool output.

These tests verify that:
1. Findings with the wrong shape fail only the tool call that produced them
2. Sibling tools and carbon sources for the same target still complete
3. Unknown severities and odd field types never crash normalization
4. Markup and control characters in messages survive to the result intact
"""

from __future__ import annotations

from typing import Any

import pytest

from ethicalgates.accessibility.normalizer import map_finding, normalize_findings
from ethicalgates.core.adapters import RecordedToolAdapter
from ethicalgates.core.errors import ToolExecutionError
from ethicalgates.core.orchestrator import AuditOrchestrator
from ethicalgates.models.carbon import CarbonSourceKind
from ethicalgates.models.results import ErrorKind
from ethicalgates.models.targets import RawFinding
from ethicalgates.models.violations import SectionStatus, Severity

HOME = "https://example.com/"


# ---------------------------------------------------------------------------
# Mapper level
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("tool, fields", [
    ("axe", {"id": "x", "impact": "serious", "tags": ["wcag143"], "nodes": "not-a-list"}),
    ("axe", {"id": "x", "impact": "serious", "tags": None}),
    ("axe", {"id": "x", "impact": "serious", "tags": [], "nodes": [42]}),
    ("lighthouse", {"id": "image-alt", "score": "very bad"}),
    ("lighthouse", {"id": "image-alt", "score": 0, "details": {"items": ["oops"]}}),
])
def test_malformed_finding_raises_tool_error(tool: str, fields: dict[str, Any]):
    with pytest.raises(ToolExecutionError, match="malformed finding"):
        map_finding(RawFinding(tool=tool, fields=fields), HOME)


@pytest.mark.parametrize("impact", [None, "", 7, "CRITICAL ", ["serious"]])
def test_odd_severity_values_never_crash(impact: Any):
    fields = {"id": "x", "impact": impact, "tags": ["wcag143"], "nodes": [{"target": ["p"]}]}
    [violation] = normalize_findings([RawFinding(tool="axe", fields=fields)], HOME)
    assert violation.severity in set(Severity)


def test_padded_severity_is_still_recognized():
    fields = {"id": "x", "impact": "  Critical ", "tags": [], "nodes": [{"target": ["p"]}]}
    [violation] = normalize_findings([RawFinding(tool="axe", fields=fields)], HOME)
    assert violation.severity == Severity.CRITICAL


def test_empty_finding_maps_through_generic_mapper():
    [violation] = normalize_findings([RawFinding(tool="mystery", fields={})], HOME)
    assert violation.severity == Severity.MODERATE
    assert violation.wcag_criterion is None


def test_deeply_nested_axe_targets():
    fields = {
        "id": "frame-focus",
        "impact": "minor",
        "tags": ["wcag241"],
        "nodes": [{"target": [["iframe#pay", ["#shadow-host", "button"]]]}],
    }
    [violation] = normalize_findings([RawFinding(tool="axe", fields=fields)], HOME)
    assert violation.element_selector == "iframe#pay #shadow-host button"


def test_markup_and_control_characters_are_preserved():
    message = "[red]Alert[/red]\x00\n<script>alert(1)</script>"
    fields = {"severity": "minor", "wcag_criterion": "1.3.1", "message": message}
    [violation] = normalize_findings([RawFinding(tool="generic", fields=fields)], HOME)
    assert violation.message == message


# ---------------------------------------------------------------------------
# Orchestrator level
# ---------------------------------------------------------------------------


class TestMalformedOutputDuringAudit:
    def test_malformed_tool_output_fails_only_that_tool(
        self, make_config, make_registry, make_carbon_source, axe_contrast
    ):
        registry = make_registry(
            tools=[
                RecordedToolAdapter("axe", {HOME: [axe_contrast]}),
                RecordedToolAdapter("pa11y", {HOME: {"not": "a list"}}),
            ],
            sources=[make_carbon_source(CarbonSourceKind.PERFORMANCE)],
        )
        result = AuditOrchestrator(make_config(tools=("axe", "pa11y")), registry).run()

        [target] = result.accessibility.targets
        assert target.status == SectionStatus.DEGRADED
        assert target.tools_failed == ["pa11y"]
        assert target.counts.serious == 1
        assert result.carbon_footprint.status == SectionStatus.OK
        [error] = result.per_target_errors
        assert error.kind == ErrorKind.TOOL
        assert error.source == "pa11y"

    def test_unmappable_finding_is_a_tool_failure(
        self, make_config, make_registry, make_carbon_source
    ):
        broken = {"id": "x", "impact": "serious", "tags": None}
        registry = make_registry(
            tools=[RecordedToolAdapter("axe", {HOME: [broken]})],
            sources=[make_carbon_source(CarbonSourceKind.PERFORMANCE)],
        )
        result = AuditOrchestrator(make_config(), registry).run()

        assert result.accessibility.status == SectionStatus.ERRORED
        assert "malformed finding" in result.per_target_errors[0].message
        # Without accessibility data nothing can be certified.
        assert result.overall.gate.passed is False

    def test_huge_finding_volume(self, make_config, make_registry, make_carbon_source):
        findings = [
            {"rule_id": f"r{i}", "severity": "minor", "message": f"issue {i}", "selector": f"#n{i}"}
            for i in range(500)
        ]
        registry = make_registry(
            tools=[RecordedToolAdapter("generic", {HOME: findings})],
            sources=[make_carbon_source(CarbonSourceKind.PERFORMANCE)],
        )
        result = AuditOrchestrator(make_config(tools=("generic",)), registry).run()

        [target] = result.accessibility.targets
        assert target.counts.minor == 500
        assert target.score == 0.0
        assert len({v.id for v in target.violations}) == 500
