"""Carbon Insights — where a page view's carbon goes and how to cut it.

Performance factors come from Lighthouse performance audits when a
lighthouse run recorded them; anything missing keeps its default.  The
breakdown splits per-page-view carbon across four components (pages over
``heavy_page_kb`` lean toward the frontend and the network), and each
recommendation fires on exactly one factor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple

from ethicalgates.models.carbon import CarbonComponent
from ethicalgates.models.config import CarbonInsightsConfig
from ethicalgates.models.results import (
    CarbonRecommendation,
    ComponentShare,
    Effort,
    PerformanceFactors,
    Priority,
)
from ethicalgates.models.targets import RawResult

logger = logging.getLogger(__name__)

BYTES_PER_KB = 1024.0
MS_PER_SECOND = 1000.0

TOTAL_BYTE_WEIGHT = "total-byte-weight"
SPEED_INDEX = "speed-index"
NETWORK_REQUESTS = "network-requests"
THIRD_PARTY_SUMMARY = "third-party-summary"
OPTIMIZED_IMAGES = "uses-optimized-images"
LONG_CACHE_TTL = "uses-long-cache-ttl"
TEXT_COMPRESSION = "uses-text-compression"

# Lighthouse audits read as performance factors, never as accessibility findings.
LIGHTHOUSE_PERFORMANCE_AUDITS = frozenset({
    TOTAL_BYTE_WEIGHT,
    SPEED_INDEX,
    NETWORK_REQUESTS,
    THIRD_PARTY_SUMMARY,
    OPTIMIZED_IMAGES,
    LONG_CACHE_TTL,
    TEXT_COMPRESSION,
})

COMPONENT_FACTORS: dict[CarbonComponent, list[str]] = {
    CarbonComponent.FRONTEND: ["JavaScript execution", "CSS rendering", "Image processing"],
    CarbonComponent.BACKEND: ["Server processing", "Database queries", "API calls"],
    CarbonComponent.INFRASTRUCTURE: ["Server hosting", "Load balancing", "CDN"],
    CarbonComponent.DATA_TRANSFER: ["Network transmission", "CDN delivery", "API responses"],
}


# ---------------------------------------------------------------------------
# Performance factors
# ---------------------------------------------------------------------------


def _performance_audits(results: list[RawResult]) -> dict[str, dict[str, Any]]:
    audits: dict[str, dict[str, Any]] = {}
    for result in results:
        if result.tool != "lighthouse":
            continue
        for finding in result.findings:
            audit_id = finding.fields.get("id")
            if audit_id in LIGHTHOUSE_PERFORMANCE_AUDITS:
                audits[audit_id] = finding.fields
    return audits


def _number(audit: dict[str, Any] | None, key: str) -> float | None:
    if not audit or audit.get(key) is None:
        return None
    try:
        return float(audit[key])
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s in audit %s", key, audit.get("id"))
        return None


def _item_count(audit: dict[str, Any] | None) -> int | None:
    if not audit:
        return None
    details = audit.get("details")
    items = details.get("items") if isinstance(details, dict) else None
    return len(items) if isinstance(items, list) else None


def _audit_score(audit: dict[str, Any] | None, default: float) -> float:
    score = _number(audit, "score")
    return default if score is None else max(0.0, min(1.0, score))


def _recorded_page_size_kb(results: list[RawResult]) -> float | None:
    for result in results:
        if "transfer_bytes" in result.metrics:
            return max(0.0, result.metrics["transfer_bytes"]) / BYTES_PER_KB
    return None


def performance_factors(
    results: Iterable[RawResult], default_page_size_kb: float = 2000.0
) -> PerformanceFactors:
    """Read the factors for one target from its tool results.

    Parameters
    ----------
    results:
        Every tool result recorded for the target.  Only Lighthouse
        performance audits and the ``transfer_bytes`` metric are read.
    default_page_size_kb:
        Page size used when neither a byte-weight audit nor a recorded
        transfer size exists.

    Returns
    -------
    PerformanceFactors
        ``measured`` is true when at least one performance audit was found.
    """
    results = list(results)
    audits = _performance_audits(results)
    defaults = PerformanceFactors()

    byte_weight = _number(audits.get(TOTAL_BYTE_WEIGHT), "numericValue")
    if byte_weight is not None:
        page_size_kb = max(0.0, byte_weight) / BYTES_PER_KB
    else:
        recorded = _recorded_page_size_kb(results)
        page_size_kb = default_page_size_kb if recorded is None else recorded

    speed_index = _number(audits.get(SPEED_INDEX), "numericValue")
    requests = _item_count(audits.get(NETWORK_REQUESTS))
    third_party = _item_count(audits.get(THIRD_PARTY_SUMMARY))
    return PerformanceFactors(
        page_size_kb=page_size_kb,
        load_time_seconds=(
            max(0.0, speed_index) / MS_PER_SECOND
            if speed_index is not None
            else defaults.load_time_seconds
        ),
        requests=defaults.requests if requests is None else requests,
        third_party_requests=defaults.third_party_requests if third_party is None else third_party,
        image_optimization=_audit_score(audits.get(OPTIMIZED_IMAGES), defaults.image_optimization),
        cache_efficiency=_audit_score(audits.get(LONG_CACHE_TTL), defaults.cache_efficiency),
        compression_ratio=_audit_score(audits.get(TEXT_COMPRESSION), defaults.compression_ratio),
        measured=bool(audits),
    )


def mean_factors(factors: list[PerformanceFactors]) -> PerformanceFactors:
    """Average factors across targets; request counts are rounded."""
    if not factors:
        return PerformanceFactors()
    n = len(factors)
    return PerformanceFactors(
        page_size_kb=sum(f.page_size_kb for f in factors) / n,
        load_time_seconds=sum(f.load_time_seconds for f in factors) / n,
        requests=round(sum(f.requests for f in factors) / n),
        third_party_requests=round(sum(f.third_party_requests for f in factors) / n),
        image_optimization=sum(f.image_optimization for f in factors) / n,
        cache_efficiency=sum(f.cache_efficiency for f in factors) / n,
        compression_ratio=sum(f.compression_ratio for f in factors) / n,
        measured=any(f.measured for f in factors),
    )


# ---------------------------------------------------------------------------
# Breakdown
# ---------------------------------------------------------------------------


def carbon_breakdown(
    carbon_grams: float, page_size_kb: float, config: CarbonInsightsConfig
) -> list[ComponentShare]:
    """Split per-page-view carbon across the four components."""
    shares = (
        config.heavy_page_shares
        if page_size_kb > config.heavy_page_kb
        else config.standard_shares
    )
    return [
        ComponentShare(
            component=component,
            carbon_grams=carbon_grams * shares.get(component, 0.0),
            percentage=shares.get(component, 0.0) * 100.0,
            factors=list(COMPONENT_FACTORS[component]),
        )
        for component in CarbonComponent
    ]


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class _Rule(NamedTuple):
    applies: Callable[[PerformanceFactors, dict[CarbonComponent, float], CarbonInsightsConfig], bool]
    area: str
    title: str
    description: str
    priority: Priority
    saving_percentage: float
    effort: Effort
    timeframe: str
    resources: tuple[str, ...]


RULES: tuple[_Rule, ...] = (
    _Rule(
        lambda f, shares, c: f.image_optimization < c.min_audit_score,
        "frontend",
        "Optimize images",
        "Compress and resize images to reduce page size and carbon footprint.",
        Priority.P1,
        20.0,
        Effort.MEDIUM,
        "1-2 weeks",
        ("WebP conversion", "Image compression tools", "Responsive images"),
    ),
    _Rule(
        lambda f, shares, c: f.cache_efficiency < c.min_audit_score,
        "infrastructure",
        "Improve caching",
        "Cache static assets longer to reduce server load and energy consumption.",
        Priority.P2,
        15.0,
        Effort.MEDIUM,
        "2-3 weeks",
        ("CDN setup", "Browser caching", "Server-side caching"),
    ),
    _Rule(
        lambda f, shares, c: f.load_time_seconds > c.max_load_time_seconds,
        "performance",
        "Improve page load speed",
        "Faster pages consume less energy on both the device and the server.",
        Priority.P1,
        25.0,
        Effort.HIGH,
        "3-4 weeks",
        ("Code splitting", "Lazy loading", "Performance optimization"),
    ),
    _Rule(
        lambda f, shares, c: f.third_party_requests > c.max_third_party_requests,
        "frontend",
        "Reduce third-party scripts",
        "Drop or self-host external dependencies to cut network requests.",
        Priority.P2,
        10.0,
        Effort.LOW,
        "1 week",
        ("Script audit", "Dependency cleanup", "Self-hosting"),
    ),
    _Rule(
        lambda f, shares, c: (
            shares.get(CarbonComponent.INFRASTRUCTURE, 0.0) > c.max_infrastructure_share
        ),
        "infrastructure",
        "Optimize infrastructure",
        "Right-size servers and prefer green hosting providers.",
        Priority.P2,
        30.0,
        Effort.HIGH,
        "4-6 weeks",
        ("Green hosting", "Server optimization", "Auto-scaling"),
    ),
)

_PRIORITY_ORDER = {priority: rank for rank, priority in enumerate(Priority)}


def carbon_recommendations(
    carbon_grams: float,
    factors: PerformanceFactors,
    breakdown: list[ComponentShare],
    config: CarbonInsightsConfig,
) -> list[CarbonRecommendation]:
    """Every recommendation whose factor fires, most urgent first.

    Savings are the rule's percentage of *carbon_grams*.  Rules of equal
    priority keep table order.
    """
    shares = {share.component: share.percentage / 100.0 for share in breakdown}
    recommendations = [
        CarbonRecommendation(
            area=rule.area,
            title=rule.title,
            description=rule.description,
            priority=rule.priority,
            saving_percentage=rule.saving_percentage,
            saving_grams=carbon_grams * rule.saving_percentage / 100.0,
            effort=rule.effort,
            timeframe=rule.timeframe,
            resources=list(rule.resources),
        )
        for rule in RULES
        if rule.applies(factors, shares, config)
    ]
    return sorted(recommendations, key=lambda r: _PRIORITY_ORDER[r.priority])
