"""Pre-run configuration validation.

Every problem is collected before raising, so a single
``ConfigurationError`` lists everything the user has to fix.  Nothing in
this module touches the network or runs an adapter.
"""

from __future__ import annotations

import logging

from ethicalgates.carbon.infrastructure import validate_infrastructure
from ethicalgates.core.adapters import AdapterRegistry
from ethicalgates.core.errors import ConfigurationError
from ethicalgates.models.carbon import CarbonSourceKind
from ethicalgates.models.config import AuditConfig

logger = logging.getLogger(__name__)


def _in_unit_interval(value: float) -> bool:
    return 0.0 <= value <= 1.0


def _check_targets(config: AuditConfig) -> list[str]:
    problems: list[str] = []
    if not config.targets:
        problems.append("targets: at least one target is required")
    seen: set[str] = set()
    for target in config.targets:
        if target.name in seen:
            problems.append(f"targets: duplicate target name {target.name!r}")
        seen.add(target.name)
        if "://" not in target.url:
            problems.append(f"targets[{target.name}].url must be absolute, got {target.url!r}")
    return problems


def _check_accessibility(config: AuditConfig) -> list[str]:
    problems: list[str] = []
    a11y = config.accessibility
    if not a11y.enabled_tools():
        problems.append("accessibility.tools: at least one tool must be enabled")
    for name in ("message_similarity_threshold", "selector_similarity_threshold"):
        value = getattr(a11y.dedup, name)
        if not _in_unit_interval(value):
            problems.append(f"accessibility.dedup.{name} must be within [0, 1], got {value}")
    names = {t.name for t in config.targets}
    for name, weight in a11y.target_weights.items():
        if name not in names:
            problems.append(f"accessibility.target_weights: unknown target {name!r}")
        if weight < 0:
            problems.append(f"accessibility.target_weights[{name}] must be >= 0")
    return problems


def _check_carbon(config: AuditConfig) -> list[str]:
    problems: list[str] = []
    carbon = config.carbon
    enabled = carbon.methods.enabled()

    if not enabled and config.quality_gates.carbon_mandatory:
        problems.append(
            "carbon: quality_gates.carbon_mandatory is set but no carbon method is enabled"
        )
    if carbon.budget_grams_per_page_view <= 0:
        problems.append("carbon.budget_grams_per_page_view must be > 0")
    if carbon.traffic.monthly_page_views <= 0:
        problems.append(
            f"carbon.traffic.monthly_page_views must be > 0, got {carbon.traffic.monthly_page_views}"
        )
    if len(set(carbon.trust_priority)) != len(carbon.trust_priority):
        problems.append("carbon.trust_priority must not repeat a source kind")

    if CarbonSourceKind.API in enabled:
        if not carbon.api.endpoint:
            problems.append("carbon.api.endpoint is required when the api method is enabled")
        if not _in_unit_interval(carbon.api.confidence):
            problems.append("carbon.api.confidence must be within [0, 1]")
    if CarbonSourceKind.PERFORMANCE in enabled:
        perf = carbon.performance
        if perf.grams_per_mb < 0:
            problems.append("carbon.performance.grams_per_mb must be >= 0")
        if perf.grid_intensity_g_per_kwh <= 0:
            problems.append("carbon.performance.grid_intensity_g_per_kwh must be > 0")
        if perf.default_page_size_kb < 0:
            problems.append("carbon.performance.default_page_size_kb must be >= 0")
        if not _in_unit_interval(perf.confidence):
            problems.append("carbon.performance.confidence must be within [0, 1]")
    if CarbonSourceKind.INFRASTRUCTURE in enabled:
        # Traffic is reported above; avoid listing it twice.
        problems.extend(
            p for p in validate_infrastructure(carbon.infrastructure, carbon.traffic)
            if not p.startswith("traffic.")
        )
        if not _in_unit_interval(carbon.infrastructure.confidence):
            problems.append("carbon.infrastructure.confidence must be within [0, 1]")
    problems.extend(_check_insights(config))
    return problems


def _check_insights(config: AuditConfig) -> list[str]:
    problems: list[str] = []
    insights = config.carbon.insights
    for name in ("standard_shares", "heavy_page_shares"):
        shares = getattr(insights, name)
        if any(not _in_unit_interval(share) for share in shares.values()):
            problems.append(f"carbon.insights.{name} must each be within [0, 1]")
        elif abs(sum(shares.values()) - 1.0) > 1e-6:
            problems.append(f"carbon.insights.{name} must sum to 1")
    if insights.heavy_page_kb < 0 or insights.max_load_time_seconds < 0:
        problems.append("carbon.insights page-size and load-time thresholds must be >= 0")
    return problems


def _check_gates_and_constants(config: AuditConfig) -> list[str]:
    problems: list[str] = []
    gates = config.quality_gates
    for severity, ceiling in gates.max_violations.model_dump().items():
        if ceiling < 0:
            problems.append(f"quality_gates.max_violations.{severity} must be >= 0")
    if not 0 <= gates.min_score <= 100:
        problems.append(f"quality_gates.min_score must be within [0, 100], got {gates.min_score}")
    for name in (
        "max_carbon_per_page_view",
        "max_carbon_per_month_kg",
        "max_energy_per_page_view_kwh",
    ):
        value = getattr(gates, name)
        if value is not None and value < 0:
            problems.append(f"quality_gates.{name} must be >= 0")

    constants = config.constants
    for severity, weight in constants.severity_weights.items():
        if weight < 0:
            problems.append(f"constants.severity_weights.{severity.value} must be >= 0")
    if constants.accessibility_weight < 0 or constants.carbon_weight < 0:
        problems.append("constants section weights must be >= 0")
    elif constants.accessibility_weight + constants.carbon_weight <= 0:
        problems.append("constants section weights must not both be 0")
    if constants.kg_co2_per_tree_year <= 0 or constants.home_kwh_per_day <= 0:
        problems.append("constants equivalents divisors must be > 0")
    if constants.effort_low_max_occurrences > constants.effort_medium_max_occurrences:
        problems.append("constants effort buckets must be ascending")
    if not 0 <= constants.overall_action_threshold <= 100:
        problems.append("constants.overall_action_threshold must be within [0, 100]")

    execution = config.execution
    if execution.max_workers < 1:
        problems.append("execution.max_workers must be >= 1")
    if execution.adapter_timeout_seconds <= 0 or execution.audit_timeout_seconds <= 0:
        problems.append("execution timeouts must be > 0")
    if execution.retries < 0 or execution.retry_backoff_seconds < 0:
        problems.append("execution.retries and retry_backoff_seconds must be >= 0")
    return problems


def _check_registry(
    config: AuditConfig,
    registry: AdapterRegistry,
    *,
    accessibility: bool,
    carbon: bool,
) -> list[str]:
    problems: list[str] = []
    if accessibility:
        for tool in config.accessibility.enabled_tools():
            if tool not in registry.tool_names:
                problems.append(f"accessibility.tools.{tool} is enabled but no adapter is registered")
    if carbon:
        for kind in config.carbon.methods.enabled():
            if kind not in registry.carbon_kinds:
                problems.append(
                    f"carbon.methods.{kind.value} is enabled but no source is registered"
                )
    return problems


def validate_audit_config(
    config: AuditConfig,
    registry: AdapterRegistry | None = None,
    *,
    accessibility: bool = True,
    carbon: bool = True,
) -> None:
    """Raise ``ConfigurationError`` listing every problem with *config*.

    Parameters
    ----------
    config:
        The audit configuration.
    registry:
        When given, every enabled tool and carbon method must have an
        adapter registered.
    accessibility, carbon:
        Which sections will run; checks for a skipped section are omitted.

    Raises
    ------
    ConfigurationError
        If any problem was found.
    """
    problems = _check_targets(config)
    if accessibility:
        problems += _check_accessibility(config)
    if carbon:
        problems += _check_carbon(config)
    problems += _check_gates_and_constants(config)
    if registry is not None:
        problems += _check_registry(
            config, registry, accessibility=accessibility, carbon=carbon
        )

    if problems:
        logger.error("Configuration rejected with %d problem(s)", len(problems))
        raise ConfigurationError(problems)
