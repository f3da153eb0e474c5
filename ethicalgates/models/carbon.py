"""Carbon estimates — per-source, combined, and projected."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CarbonSourceKind(str, Enum):
    """The three independent estimator families."""

    API = "api"
    PERFORMANCE = "performance"
    INFRASTRUCTURE = "infrastructure"


class CarbonComponent(str, Enum):
    """Where a page view's carbon is attributed in the breakdown."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    INFRASTRUCTURE = "infrastructure"
    DATA_TRANSFER = "data_transfer"


class CombineStrategy(str, Enum):
    """How several successful estimates are merged.

    * ``weighted`` — confidence-weighted average of all successes.
    * ``priority`` — take the first success in trust-priority order.
    """

    WEIGHTED = "weighted"
    PRIORITY = "priority"


class CarbonEstimate(BaseModel):
    """One successful source estimate for a single page view."""

    model_config = ConfigDict(frozen=True)

    source_name: str
    source_kind: CarbonSourceKind
    carbon_grams: float = Field(ge=0.0)
    energy_kwh: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=1.0)


class CarbonSourceFailure(BaseModel):
    """A typed failure from a carbon source; triggers fallback, never aborts."""

    model_config = ConfigDict(frozen=True)

    source_name: str
    source_kind: CarbonSourceKind
    target_url: str
    reason: str
    timed_out: bool = False


class PerPageView(BaseModel):
    model_config = ConfigDict(frozen=True)

    carbon_grams: float = Field(ge=0.0)
    energy_kwh: float = Field(ge=0.0)


class MonthlyTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    carbon_kg: float = Field(ge=0.0)
    energy_kwh: float = Field(ge=0.0)


class Equivalents(BaseModel):
    """Human-scale equivalents of an annual carbon footprint."""

    model_config = ConfigDict(frozen=True)

    trees_required: int = Field(ge=0)
    car_miles: float = Field(ge=0.0)
    home_energy_days: float = Field(ge=0.0)


class AnnualProjection(BaseModel):
    model_config = ConfigDict(frozen=True)

    carbon_kg: float = Field(ge=0.0)
    energy_mwh: float = Field(ge=0.0)
    equivalents: Equivalents


class CombinedCarbonEstimate(BaseModel):
    """Best estimate after combining every available source."""

    model_config = ConfigDict(frozen=True)

    per_page_view: PerPageView
    monthly: MonthlyTotals
    annual: AnnualProjection
    confidence: float = Field(ge=0.0, le=1.0)
    sources_used: list[str] = []
    primary_source: str = ""
    method: str = "single"  # single | weighted | priority | mean


class TargetCarbonResult(BaseModel):
    """Carbon outcome for a single target."""

    model_config = ConfigDict(frozen=True)

    target_name: str
    target_url: str
    estimates: list[CarbonEstimate] = []
    failures: list[CarbonSourceFailure] = []
    combined: CombinedCarbonEstimate | None = None
