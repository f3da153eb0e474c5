"""Audit output models — the canonical ``EthicalAuditResult`` contract.

Report renderers and CI integrations consume only these models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ethicalgates.models.carbon import (
    CarbonComponent,
    CombinedCarbonEstimate,
    TargetCarbonResult,
)
from ethicalgates.models.violations import (
    AccessibilityResult,
    SectionStatus,
    SeverityCounts,
    WcagLevel,
)


class Grade(str, Enum):
    A_PLUS = "A+"
    A = "A"
    B_PLUS = "B+"
    B = "B"
    C_PLUS = "C+"
    C = "C"
    D = "D"
    F = "F"


class Priority(str, Enum):
    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class ActionCategory(str, Enum):
    ACCESSIBILITY = "accessibility"
    SUSTAINABILITY = "sustainability"
    OVERALL = "overall"


class Effort(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorKind(str, Enum):
    TOOL = "tool"
    CARBON_SOURCE = "carbon_source"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class TargetError(BaseModel):
    """A per-target, per-source failure captured instead of raised."""

    model_config = ConfigDict(frozen=True)

    target_name: str
    target_url: str
    source: str
    kind: ErrorKind
    message: str


class GateResult(BaseModel):
    """Quality gate decision.  Each violated threshold adds one reason."""

    model_config = ConfigDict(frozen=True)

    passed: bool
    reasons: list[str] = []


class ActionItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    category: ActionCategory
    priority: Priority
    effort_estimate: Effort
    related_violation_ids: list[str] = []
    occurrences: int = 0
    rank_weight: float = 0.0


class AccessibilitySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SectionStatus = SectionStatus.OK
    wcag_level: WcagLevel = WcagLevel.AA
    score: float | None = None
    wcag_level_compliant: bool = True
    counts: SeverityCounts = SeverityCounts()
    targets: list[AccessibilityResult] = []

    @property
    def total_violations(self) -> int:
        return self.counts.total


# ---------------------------------------------------------------------------
# Carbon insights
# ---------------------------------------------------------------------------


class PerformanceFactors(BaseModel):
    """Page characteristics that drive the breakdown and recommendations.

    Audit scores are in [0, 1].  ``measured`` is false when every value is
    a default because no Lighthouse performance audit was available.
    """

    model_config = ConfigDict(frozen=True)

    page_size_kb: float = Field(default=2000.0, ge=0.0)
    load_time_seconds: float = Field(default=3.0, ge=0.0)
    requests: int = Field(default=50, ge=0)
    third_party_requests: int = Field(default=15, ge=0)
    image_optimization: float = Field(default=0.7, ge=0.0, le=1.0)
    cache_efficiency: float = Field(default=0.7, ge=0.0, le=1.0)
    compression_ratio: float = Field(default=0.7, ge=0.0, le=1.0)
    measured: bool = False


class ComponentShare(BaseModel):
    model_config = ConfigDict(frozen=True)

    component: CarbonComponent
    carbon_grams: float = Field(ge=0.0)
    percentage: float = Field(ge=0.0, le=100.0)
    factors: list[str] = []


class CarbonRecommendation(BaseModel):
    """A concrete change with its expected saving per page view."""

    model_config = ConfigDict(frozen=True)

    area: str
    title: str
    description: str
    priority: Priority
    saving_percentage: float = Field(ge=0.0, le=100.0)
    saving_grams: float = Field(ge=0.0)
    effort: Effort
    timeframe: str
    resources: list[str] = []


class TargetCarbonInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_name: str
    target_url: str
    factors: PerformanceFactors
    breakdown: list[ComponentShare] = []
    recommendations: list[CarbonRecommendation] = []


class CarbonFootprintSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SectionStatus = SectionStatus.OK
    estimate: CombinedCarbonEstimate | None = None
    carbon_score: float | None = None
    budget_grams_per_page_view: float = 0.0
    targets: list[TargetCarbonResult] = []
    breakdown: list[ComponentShare] = []
    recommendations: list[CarbonRecommendation] = []
    insights: list[TargetCarbonInsights] = []


class OverallAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    grade: Grade
    compliant: bool
    gate: GateResult


class EthicalAuditResult(BaseModel):
    """The single JSON-serializable output of an audit run."""

    model_config = ConfigDict(frozen=True)

    audit_id: str
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    config_hash: str = ""
    accessibility: AccessibilitySummary
    carbon_footprint: CarbonFootprintSummary
    overall: OverallAssessment
    action_items: list[ActionItem] = []
    per_target_errors: list[TargetError] = []
    degraded: bool = False
