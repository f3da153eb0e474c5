"""ethicalgates data models — all Pydantic v2, all frozen (immutable)."""

from ethicalgates.models.carbon import (
    AnnualProjection,
    CarbonComponent,
    CarbonEstimate,
    CarbonSourceFailure,
    CarbonSourceKind,
    CombinedCarbonEstimate,
    CombineStrategy,
    Equivalents,
    MonthlyTotals,
    PerPageView,
    TargetCarbonResult,
)
from ethicalgates.models.config import (
    AccessibilityConfig,
    AuditConfig,
    CarbonConfig,
    CarbonInsightsConfig,
    ExecutionConfig,
    InfrastructureConfig,
    QualityGateConfig,
    ScoringConstants,
    ServerSpec,
)
from ethicalgates.models.results import (
    AccessibilitySummary,
    ActionCategory,
    ActionItem,
    CarbonFootprintSummary,
    CarbonRecommendation,
    ComponentShare,
    Effort,
    ErrorKind,
    EthicalAuditResult,
    GateResult,
    Grade,
    OverallAssessment,
    PerformanceFactors,
    Priority,
    TargetCarbonInsights,
    TargetError,
)
from ethicalgates.models.targets import (
    Authentication,
    AuthType,
    RawFinding,
    RawResult,
    Target,
    Viewport,
)
from ethicalgates.models.violations import (
    AccessibilityResult,
    SectionStatus,
    Severity,
    SeverityCounts,
    Violation,
    WcagLevel,
)

__all__ = [
    # targets
    "Target",
    "Viewport",
    "Authentication",
    "AuthType",
    "RawFinding",
    "RawResult",
    # violations
    "Severity",
    "SeverityCounts",
    "Violation",
    "WcagLevel",
    "SectionStatus",
    "AccessibilityResult",
    # carbon
    "CarbonSourceKind",
    "CarbonComponent",
    "CombineStrategy",
    "CarbonEstimate",
    "CarbonSourceFailure",
    "PerPageView",
    "MonthlyTotals",
    "Equivalents",
    "AnnualProjection",
    "CombinedCarbonEstimate",
    "TargetCarbonResult",
    # config
    "AuditConfig",
    "AccessibilityConfig",
    "CarbonConfig",
    "CarbonInsightsConfig",
    "InfrastructureConfig",
    "ServerSpec",
    "QualityGateConfig",
    "ScoringConstants",
    "ExecutionConfig",
    # results
    "Grade",
    "Priority",
    "ActionCategory",
    "Effort",
    "ErrorKind",
    "TargetError",
    "GateResult",
    "ActionItem",
    "AccessibilitySummary",
    "CarbonFootprintSummary",
    "PerformanceFactors",
    "ComponentShare",
    "CarbonRecommendation",
    "TargetCarbonInsights",
    "OverallAssessment",
    "EthicalAuditResult",
]
