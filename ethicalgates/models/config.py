"""Audit configuration — the strongly typed contract the engine consumes.

The engine never parses files: callers hand it an ``AuditConfig``.  Every
scoring constant lives here too, so the same config always reproduces the
same scores.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ethicalgates.models.carbon import CarbonComponent, CarbonSourceKind, CombineStrategy
from ethicalgates.models.targets import Target
from ethicalgates.models.violations import Severity, WcagLevel

# Grid carbon intensity (gCO2/kWh) by region and cloud provider.
DEFAULT_REGIONAL_INTENSITY: dict[str, dict[str, float]] = {
    "us-east-1": {"aws": 415.0, "gcp": 479.0, "azure": 415.0},
    "us-west-2": {"aws": 351.0, "gcp": 351.0, "azure": 351.0},
    "eu-west-1": {"aws": 316.0, "gcp": 316.0, "azure": 316.0},
    "eu-central-1": {"aws": 338.0, "gcp": 338.0, "azure": 338.0},
    "ap-southeast-1": {"aws": 431.0, "gcp": 431.0, "azure": 431.0},
    "ap-northeast-1": {"aws": 462.0, "gcp": 462.0, "azure": 462.0},
}

DEFAULT_TRUST_PRIORITY: list[CarbonSourceKind] = [
    CarbonSourceKind.API,
    CarbonSourceKind.INFRASTRUCTURE,
    CarbonSourceKind.PERFORMANCE,
]


# ---------------------------------------------------------------------------
# Accessibility
# ---------------------------------------------------------------------------


class ToolToggle(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True


def _default_tools() -> dict[str, ToolToggle]:
    return {
        "axe": ToolToggle(),
        "pa11y": ToolToggle(),
        "lighthouse": ToolToggle(),
    }


class DedupConfig(BaseModel):
    """Thresholds for merging findings of the same (url, criterion) group.

    Similarity is the Jaccard ratio of character trigram sets.  A selector
    threshold of 1.0 means selectors must match exactly after whitespace
    normalisation.
    """

    model_config = ConfigDict(frozen=True)

    message_similarity_threshold: float = 0.8
    selector_similarity_threshold: float = 1.0


class AccessibilityConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    wcag_level: WcagLevel = WcagLevel.AA
    tools: dict[str, ToolToggle] = Field(default_factory=_default_tools)
    dedup: DedupConfig = DedupConfig()
    target_weights: dict[str, float] = Field(default_factory=dict)

    def enabled_tools(self) -> list[str]:
        return [name for name, toggle in self.tools.items() if toggle.enabled]


# ---------------------------------------------------------------------------
# Carbon
# ---------------------------------------------------------------------------


class CarbonMethods(BaseModel):
    model_config = ConfigDict(frozen=True)

    api: bool = True
    performance: bool = True
    infrastructure: bool = False

    def enabled(self) -> list[CarbonSourceKind]:
        return [kind for kind in CarbonSourceKind if getattr(self, kind.value)]


class ApiSourceConfig(BaseModel):
    """External carbon-estimation service (Website Carbon compatible)."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = "https://api.websitecarbon.com/data"
    api_key: str = Field(default="", repr=False)
    confidence: float = 0.9


class PerformanceSourceConfig(BaseModel):
    """Transfer-size based estimate.

    ``grams_per_mb`` is grams CO2 per megabyte transferred on an average
    grid (0.006 g per KB); green-hosted sites multiply it by
    ``green_hosting_multiplier``.  Energy is carbon over
    ``grid_intensity_g_per_kwh``.
    """

    model_config = ConfigDict(frozen=True)

    grams_per_mb: float = 6.144
    green_hosting_multiplier: float = 0.5
    grid_intensity_g_per_kwh: float = 500.0
    default_page_size_kb: float = 2000.0
    confidence: float = 0.5


class CpuSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    cores: float
    tdp_watts: float | None = None  # whole-package TDP, overrides per-core default


class MemorySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    size_gb: float


class StorageSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    size_gb: float
    type: str = "ssd"  # ssd | hdd | nvme


class ServerSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "compute"  # compute | storage | network | database
    cpu: CpuSpec | None = None
    memory: MemorySpec | None = None
    storage: StorageSpec | None = None
    utilization_rate: float = 0.5
    hours_per_month: float = 730.0


class CdnConfig(BaseModel):
    """Requests served from cache cost ``cached_request_grams`` instead of
    the full origin allocation."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    cache_hit_rate: float = 0.8
    cached_request_grams: float = 0.0
    cached_request_kwh: float = 0.0


def _default_storage_watts() -> dict[str, float]:
    return {"ssd": 2.0, "nvme": 2.0, "hdd": 6.0}


class InfrastructureConfig(BaseModel):
    """Bottom-up server model inputs and its named coefficients."""

    model_config = ConfigDict(frozen=True)

    cloud_provider: str = "aws"
    region: str = "us-east-1"
    carbon_intensity_g_per_kwh: float | None = None  # overrides the table
    regional_intensity: dict[str, dict[str, float]] = Field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_REGIONAL_INTENSITY.items()}
    )
    fallback_intensity_g_per_kwh: float = 500.0
    servers: list[ServerSpec] = []
    cdn: CdnConfig = CdnConfig()
    pue: float = 1.2
    per_core_tdp_watts: float = 15.0
    per_gb_memory_watts: float = 0.5
    storage_watts_per_tb: dict[str, float] = Field(default_factory=_default_storage_watts)
    confidence: float = 0.7


class TrafficConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    monthly_page_views: float = 10_000


def _standard_shares() -> dict[CarbonComponent, float]:
    return {
        CarbonComponent.FRONTEND: 0.3,
        CarbonComponent.BACKEND: 0.4,
        CarbonComponent.INFRASTRUCTURE: 0.2,
        CarbonComponent.DATA_TRANSFER: 0.1,
    }


def _heavy_page_shares() -> dict[CarbonComponent, float]:
    return {
        CarbonComponent.FRONTEND: 0.4,
        CarbonComponent.BACKEND: 0.3,
        CarbonComponent.INFRASTRUCTURE: 0.15,
        CarbonComponent.DATA_TRANSFER: 0.15,
    }


class CarbonInsightsConfig(BaseModel):
    """Breakdown shares and the thresholds that trigger recommendations.

    Pages heavier than ``heavy_page_kb`` shift carbon toward the frontend
    and the network.  Audit scores below ``min_audit_score`` count as
    unoptimized.
    """

    model_config = ConfigDict(frozen=True)

    standard_shares: dict[CarbonComponent, float] = Field(default_factory=_standard_shares)
    heavy_page_shares: dict[CarbonComponent, float] = Field(
        default_factory=_heavy_page_shares
    )
    heavy_page_kb: float = 2000.0
    min_audit_score: float = 0.8
    max_load_time_seconds: float = 3.0
    max_third_party_requests: int = 20
    max_infrastructure_share: float = 0.3


class CarbonConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    methods: CarbonMethods = CarbonMethods()
    api: ApiSourceConfig = ApiSourceConfig()
    performance: PerformanceSourceConfig = PerformanceSourceConfig()
    infrastructure: InfrastructureConfig = InfrastructureConfig()
    traffic: TrafficConfig = TrafficConfig()
    insights: CarbonInsightsConfig = CarbonInsightsConfig()
    green_hosting: bool = False
    trust_priority: list[CarbonSourceKind] = Field(
        default_factory=lambda: list(DEFAULT_TRUST_PRIORITY)
    )
    strategy: CombineStrategy = CombineStrategy.WEIGHTED
    budget_grams_per_page_view: float = 5.0


# ---------------------------------------------------------------------------
# Quality gates
# ---------------------------------------------------------------------------


class ViolationCeilings(BaseModel):
    """Maximum allowed violations per severity, summed over all targets."""

    model_config = ConfigDict(frozen=True)

    critical: int = 0
    serious: int = 0
    moderate: int = 5
    minor: int = 10

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)


class QualityGateConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_violations: ViolationCeilings = ViolationCeilings()
    min_score: float = 90.0
    max_carbon_per_page_view: float | None = 5.0
    max_carbon_per_month_kg: float | None = None
    max_energy_per_page_view_kwh: float | None = None
    carbon_mandatory: bool = False
    fail_on_violation: bool = True


# ---------------------------------------------------------------------------
# Scoring constants and execution
# ---------------------------------------------------------------------------


def _default_severity_weights() -> dict[Severity, float]:
    return {
        Severity.CRITICAL: 10.0,
        Severity.SERIOUS: 5.0,
        Severity.MODERATE: 2.0,
        Severity.MINOR: 0.5,
    }


class ScoringConstants(BaseModel):
    """Every number that shapes a score, passed explicitly to each component."""

    model_config = ConfigDict(frozen=True)

    severity_weights: dict[Severity, float] = Field(
        default_factory=_default_severity_weights
    )
    accessibility_weight: float = 0.6
    carbon_weight: float = 0.4
    kg_co2_per_tree_year: float = 21.77
    car_miles_per_kg_co2: float = 2.31
    home_kwh_per_day: float = 30.0
    effort_low_max_occurrences: int = 2
    effort_medium_max_occurrences: int = 9
    overall_action_threshold: float = 80.0

    def weight_of(self, severity: Severity) -> float:
        return self.severity_weights.get(severity, 0.0)


class ExecutionConfig(BaseModel):
    """Worker pool size, per-call timeout, retries and the overall deadline."""

    model_config = ConfigDict(frozen=True)

    max_workers: int = 4
    adapter_timeout_seconds: float = 30.0
    audit_timeout_seconds: float = 300.0
    retries: int = 1
    retry_backoff_seconds: float = 0.5


class AuditConfig(BaseModel):
    """Root configuration object for one audit run."""

    model_config = ConfigDict(frozen=True)

    targets: list[Target] = []
    accessibility: AccessibilityConfig = AccessibilityConfig()
    carbon: CarbonConfig = CarbonConfig()
    quality_gates: QualityGateConfig = QualityGateConfig()
    constants: ScoringConstants = ScoringConstants()
    execution: ExecutionConfig = ExecutionConfig()

    def fingerprint_dump(self) -> dict:
        """JSON-mode dump with secrets removed, for hashing."""
        dump = self.model_dump(mode="json")
        dump["carbon"]["api"].pop("api_key", None)
        for target in dump.get("targets", []):
            target.get("authentication", {}).pop("credentials", None)
        return dump
