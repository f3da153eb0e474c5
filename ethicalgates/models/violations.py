"""Canonical accessibility violations and per-target accessibility results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """The four canonical severity buckets, highest first."""

    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"

    @property
    def rank(self) -> int:
        """Ordering key: higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 4,
    Severity.SERIOUS: 3,
    Severity.MODERATE: 2,
    Severity.MINOR: 1,
}


def max_severity(*severities: Severity) -> Severity:
    """Return the most severe of *severities*."""
    return max(severities, key=lambda s: s.rank)


class WcagLevel(str, Enum):
    """WCAG conformance level."""

    A = "A"
    AA = "AA"
    AAA = "AAA"


class SectionStatus(str, Enum):
    """Completeness of a result section.

    * ``ok`` — every adapter call completed.
    * ``degraded`` — some calls failed, timed out or were cancelled.
    * ``errored`` — no usable data was produced.
    * ``skipped`` — the section was not requested.
    """

    OK = "ok"
    DEGRADED = "degraded"
    ERRORED = "errored"
    SKIPPED = "skipped"


class Violation(BaseModel):
    """A deduplicated, severity-normalized accessibility finding."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_tools: tuple[str, ...]
    rule_ids: tuple[str, ...] = ()
    wcag_criterion: str | None = None
    severity: Severity
    target_url: str
    element_selector: str = ""
    message: str = ""
    occurrences: int = Field(default=1, ge=1)

    @field_validator("source_tools", "rule_ids")
    @classmethod
    def _sorted_unique(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        # Set semantics with a stable serialized order.
        return tuple(sorted(set(value)))


class SeverityCounts(BaseModel):
    """Violation counts per canonical severity."""

    model_config = ConfigDict(frozen=True)

    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.serious + self.moderate + self.minor

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    @classmethod
    def from_violations(cls, violations: list[Violation]) -> SeverityCounts:
        counts = {s.value: 0 for s in Severity}
        for violation in violations:
            counts[violation.severity.value] += 1
        return cls(**counts)

    def __add__(self, other: SeverityCounts) -> SeverityCounts:
        return SeverityCounts(
            critical=self.critical + other.critical,
            serious=self.serious + other.serious,
            moderate=self.moderate + other.moderate,
            minor=self.minor + other.minor,
        )


class AccessibilityResult(BaseModel):
    """Accessibility outcome for a single target."""

    model_config = ConfigDict(frozen=True)

    target_name: str
    target_url: str
    violations: list[Violation] = []
    score: float = Field(default=100.0, ge=0.0, le=100.0)
    wcag_level_compliant: bool = True
    counts: SeverityCounts = SeverityCounts()
    status: SectionStatus = SectionStatus.OK
    tools_run: list[str] = []
    tools_failed: list[str] = []
