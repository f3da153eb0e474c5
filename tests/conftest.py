"""Shared test fixtures for ethicalgates."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from ethicalgates.core.adapters import AdapterRegistry
from ethicalgates.core.errors import CarbonSourceError, ToolExecutionError
from ethicalgates.models.carbon import CarbonEstimate, CarbonSourceKind
from ethicalgates.models.config import (
    AccessibilityConfig,
    AuditConfig,
    CarbonConfig,
    CarbonMethods,
    ExecutionConfig,
    QualityGateConfig,
    ToolToggle,
)
from ethicalgates.models.targets import RawFinding, RawResult, Target
from ethicalgates.models.violations import Severity, Violation


# ---------------------------------------------------------------------------
# In-memory adapters
# ---------------------------------------------------------------------------


class StaticToolAdapter:
    """Returns canned findings per URL; can be slowed down or made to fail."""

    def __init__(
        self,
        name: str,
        findings: dict[str, list[dict[str, Any]]] | None = None,
        *,
        delay: float = 0.0,
        fail_times: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.findings = findings or {}
        self.delay = delay
        self.fail_times = fail_times
        self.error = error
        self.calls = 0
        self._lock = threading.Lock()

    def run(self, target: Target) -> RawResult:
        with self._lock:
            self.calls += 1
            call = self.calls
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if call <= self.fail_times:
            raise ToolExecutionError(self.name, f"transient failure #{call}")
        return RawResult(
            tool=self.name,
            target_url=target.url,
            findings=[
                RawFinding(tool=self.name, fields=f)
                for f in self.findings.get(target.url, [])
            ],
        )


class StaticCarbonSource:
    """Returns a fixed estimate; can be slowed down or made to fail."""

    def __init__(
        self,
        kind: CarbonSourceKind,
        grams: float = 1.0,
        energy: float = 0.002,
        confidence: float = 0.5,
        *,
        name: str | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.name = name or kind.value
        self.grams = grams
        self.energy = energy
        self.confidence = confidence
        self.delay = delay
        self.error = error

    def run(self, target: Target) -> CarbonEstimate:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return CarbonEstimate(
            source_name=self.name,
            source_kind=self.kind,
            carbon_grams=self.grams,
            energy_kwh=self.energy,
            confidence=self.confidence,
        )


@pytest.fixture
def make_tool_adapter() -> Callable[..., StaticToolAdapter]:
    """Factory fixture: an in-memory tool adapter (see ``StaticToolAdapter``)."""
    return StaticToolAdapter


@pytest.fixture
def make_carbon_source() -> Callable[..., StaticCarbonSource]:
    """Factory fixture: an in-memory carbon source (see ``StaticCarbonSource``)."""
    return StaticCarbonSource


@pytest.fixture
def make_failing_source() -> Callable[[CarbonSourceKind], StaticCarbonSource]:
    """Factory fixture: a carbon source that always raises CarbonSourceError."""

    def _factory(kind: CarbonSourceKind) -> StaticCarbonSource:
        return StaticCarbonSource(kind, error=CarbonSourceError(kind.value, "unavailable"))

    return _factory


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_target() -> Callable[..., Target]:
    """Factory fixture: build a Target with sensible defaults."""

    def _factory(name: str = "home", url: str = "https://example.com/", **overrides: Any) -> Target:
        return Target(name=name, url=url, **overrides)

    return _factory


@pytest.fixture
def make_violation() -> Callable[..., Violation]:
    """Factory fixture: build a canonical Violation."""
    counter = {"n": 0}

    def _factory(
        severity: Severity = Severity.MODERATE,
        wcag_criterion: str | None = "1.4.3",
        **overrides: Any,
    ) -> Violation:
        counter["n"] += 1
        defaults: dict[str, Any] = {
            "id": f"v-test-{counter['n']}",
            "source_tools": ("axe",),
            "rule_ids": ("color-contrast",),
            "wcag_criterion": wcag_criterion,
            "severity": severity,
            "target_url": "https://example.com/",
            "element_selector": f"#el-{counter['n']}",
            "message": "Elements must have sufficient color contrast",
        }
        defaults.update(overrides)
        return Violation(**defaults)

    return _factory


@pytest.fixture
def make_estimate() -> Callable[..., CarbonEstimate]:
    """Factory fixture: build a CarbonEstimate."""

    def _factory(
        kind: CarbonSourceKind = CarbonSourceKind.PERFORMANCE,
        carbon_grams: float = 1.0,
        energy_kwh: float = 0.002,
        confidence: float = 0.5,
        **overrides: Any,
    ) -> CarbonEstimate:
        defaults: dict[str, Any] = {
            "source_name": kind.value,
            "source_kind": kind,
            "carbon_grams": carbon_grams,
            "energy_kwh": energy_kwh,
            "confidence": confidence,
        }
        defaults.update(overrides)
        return CarbonEstimate(**defaults)

    return _factory


@pytest.fixture
def fast_execution() -> ExecutionConfig:
    """Short timeouts and no retry backoff so tests stay quick."""
    return ExecutionConfig(
        max_workers=4,
        adapter_timeout_seconds=2.0,
        audit_timeout_seconds=10.0,
        retries=0,
        retry_backoff_seconds=0.01,
    )


@pytest.fixture
def make_config(fast_execution: ExecutionConfig) -> Callable[..., AuditConfig]:
    """Factory fixture: an AuditConfig with one axe tool and offline carbon.

    Only ``axe`` is enabled and the API carbon method is off, so nothing
    reaches the network.
    """

    def _factory(
        targets: list[Target] | None = None,
        tools: tuple[str, ...] = ("axe",),
        methods: CarbonMethods | None = None,
        quality_gates: QualityGateConfig | None = None,
        carbon: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> AuditConfig:
        defaults: dict[str, Any] = {
            "targets": targets or [Target(name="home", url="https://example.com/")],
            "accessibility": AccessibilityConfig(
                tools={name: ToolToggle() for name in tools}
            ),
            "carbon": CarbonConfig(
                methods=methods or CarbonMethods(api=False, performance=True),
                **(carbon or {}),
            ),
            "quality_gates": quality_gates or QualityGateConfig(),
            "execution": fast_execution,
        }
        defaults.update(overrides)
        return AuditConfig(**defaults)

    return _factory


@pytest.fixture
def make_registry() -> Callable[..., AdapterRegistry]:
    """Factory fixture: an AdapterRegistry holding the given adapters."""

    def _factory(tools: list[Any] = (), sources: list[Any] = ()) -> AdapterRegistry:
        registry = AdapterRegistry()
        for tool in tools:
            registry.register_tool(tool)
        for source in sources:
            registry.register_carbon_source(source)
        return registry

    return _factory


# ---------------------------------------------------------------------------
# Tool-native sample findings
# ---------------------------------------------------------------------------


@pytest.fixture
def axe_contrast() -> dict[str, Any]:
    """An axe color-contrast result with two offending nodes."""
    return {
        "id": "color-contrast",
        "impact": "serious",
        "tags": ["cat.color", "wcag2aa", "wcag143"],
        "help": "Elements must have sufficient color contrast",
        "nodes": [
            {"target": ["#hero > p"]},
            {"target": ["footer .legal"]},
        ],
    }


@pytest.fixture
def axe_image_alt() -> dict[str, Any]:
    return {
        "id": "image-alt",
        "impact": "critical",
        "tags": ["cat.text-alternatives", "wcag2a", "wcag111"],
        "help": "Images must have alternate text",
        "nodes": [{"target": ["img.logo"]}],
    }


@pytest.fixture
def pa11y_contrast() -> dict[str, Any]:
    """The pa11y report of the same contrast problem on ``#hero > p``."""
    return {
        "code": "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail",
        "type": "error",
        "message": "This element has insufficient contrast at this conformance level.",
        "selector": "#hero > p",
    }
