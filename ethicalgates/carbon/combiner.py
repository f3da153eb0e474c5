"""Carbon Combiner — merges per-source estimates into one best estimate.

Rules:

* Sources are considered in trust-priority order (default
  api > infrastructure > performance).
* Exactly one success is passed through unchanged.
* Several successes are merged by the configured strategy: a
  confidence-weighted average (``weighted``) or the most trusted success
  (``priority``).
* No success yields ``None``; the caller decides whether that is fatal.

Monthly and annual projections are derived from the per-page-view figures
and the configured traffic.
"""

from __future__ import annotations

import logging
import math

from ethicalgates.models.carbon import (
    AnnualProjection,
    CarbonEstimate,
    CarbonSourceKind,
    CombinedCarbonEstimate,
    CombineStrategy,
    Equivalents,
    MonthlyTotals,
    PerPageView,
)
from ethicalgates.models.config import CarbonConfig, ScoringConstants

logger = logging.getLogger(__name__)

GRAMS_PER_KG = 1000.0
KWH_PER_MWH = 1000.0
MONTHS_PER_YEAR = 12


def _priority_index(priority: list[CarbonSourceKind]) -> dict[CarbonSourceKind, int]:
    index = {kind: i for i, kind in enumerate(priority)}
    for kind in CarbonSourceKind:
        index.setdefault(kind, len(index))
    return index


def order_by_priority(
    estimates: list[CarbonEstimate], priority: list[CarbonSourceKind]
) -> list[CarbonEstimate]:
    """Sort estimates most-trusted first (stable for equal kinds)."""
    index = _priority_index(priority)
    return sorted(estimates, key=lambda e: index[e.source_kind])


def project(
    per_page_view: PerPageView,
    monthly_page_views: float,
    constants: ScoringConstants,
) -> tuple[MonthlyTotals, AnnualProjection]:
    """Scale one page view to monthly totals and an annual projection."""
    monthly_kg = per_page_view.carbon_grams * monthly_page_views / GRAMS_PER_KG
    monthly_kwh = per_page_view.energy_kwh * monthly_page_views
    annual_kg = monthly_kg * MONTHS_PER_YEAR
    annual_kwh = monthly_kwh * MONTHS_PER_YEAR

    equivalents = Equivalents(
        trees_required=math.ceil(annual_kg / constants.kg_co2_per_tree_year),
        car_miles=annual_kg * constants.car_miles_per_kg_co2,
        home_energy_days=annual_kwh / constants.home_kwh_per_day,
    )
    monthly = MonthlyTotals(carbon_kg=monthly_kg, energy_kwh=monthly_kwh)
    annual = AnnualProjection(
        carbon_kg=annual_kg,
        energy_mwh=annual_kwh / KWH_PER_MWH,
        equivalents=equivalents,
    )
    return monthly, annual


def _weighted(estimates: list[CarbonEstimate]) -> tuple[PerPageView, float]:
    total = sum(e.confidence for e in estimates)
    if total <= 0:
        # All sources claim zero confidence: fall back to a plain mean.
        weights = [1.0] * len(estimates)
        total = float(len(estimates))
    else:
        weights = [e.confidence for e in estimates]
    carbon = sum(e.carbon_grams * w for e, w in zip(estimates, weights)) / total
    energy = sum(e.energy_kwh * w for e, w in zip(estimates, weights)) / total
    return (
        PerPageView(carbon_grams=carbon, energy_kwh=energy),
        max(e.confidence for e in estimates),
    )


def combine_estimates(
    estimates: list[CarbonEstimate],
    config: CarbonConfig,
    constants: ScoringConstants,
) -> CombinedCarbonEstimate | None:
    """Combine the successful estimates for one target.

    Parameters
    ----------
    estimates:
        Successful source estimates, in any order.
    config:
        Supplies trust priority, strategy and traffic.
    constants:
        Equivalents factors.

    Returns
    -------
    CombinedCarbonEstimate | None
        ``None`` when *estimates* is empty.
    """
    if not estimates:
        return None

    ordered = order_by_priority(estimates, config.trust_priority)
    primary = ordered[0]

    if len(ordered) == 1:
        per_view = PerPageView(
            carbon_grams=primary.carbon_grams, energy_kwh=primary.energy_kwh
        )
        confidence = primary.confidence
        used = [primary.source_name]
        method = "single"
    elif config.strategy == CombineStrategy.PRIORITY:
        per_view = PerPageView(
            carbon_grams=primary.carbon_grams, energy_kwh=primary.energy_kwh
        )
        confidence = primary.confidence
        used = [primary.source_name]
        method = CombineStrategy.PRIORITY.value
    else:
        per_view, confidence = _weighted(ordered)
        used = [e.source_name for e in ordered]
        method = CombineStrategy.WEIGHTED.value

    monthly, annual = project(per_view, config.traffic.monthly_page_views, constants)
    logger.debug(
        "Combined %d estimate(s) via %s: %.4f g/page view (primary %s)",
        len(ordered),
        method,
        per_view.carbon_grams,
        primary.source_name,
    )
    return CombinedCarbonEstimate(
        per_page_view=per_view,
        monthly=monthly,
        annual=annual,
        confidence=confidence,
        sources_used=used,
        primary_source=primary.source_name,
        method=method,
    )


def site_estimate(
    combined: list[CombinedCarbonEstimate],
    config: CarbonConfig,
    constants: ScoringConstants,
) -> CombinedCarbonEstimate | None:
    """Site-level estimate: the mean of per-target per-page-view figures.

    A single target's estimate is returned unchanged.
    """
    if not combined:
        return None
    if len(combined) == 1:
        return combined[0]

    count = len(combined)
    per_view = PerPageView(
        carbon_grams=sum(c.per_page_view.carbon_grams for c in combined) / count,
        energy_kwh=sum(c.per_page_view.energy_kwh for c in combined) / count,
    )
    monthly, annual = project(per_view, config.traffic.monthly_page_views, constants)

    used: list[str] = []
    for estimate in combined:
        for name in estimate.sources_used:
            if name not in used:
                used.append(name)
    return CombinedCarbonEstimate(
        per_page_view=per_view,
        monthly=monthly,
        annual=annual,
        confidence=sum(c.confidence for c in combined) / count,
        sources_used=used,
        primary_source=combined[0].primary_source,
        method="mean",
    )
