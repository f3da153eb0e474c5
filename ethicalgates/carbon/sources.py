"""Carbon source adapters — API, performance and infrastructure estimators.

Every source returns one ``CarbonEstimate`` for a single page view of a
target, or raises ``CarbonSourceError``.  Fallback between sources is the
combiner's job, never the source's.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ethicalgates.carbon.infrastructure import InfrastructureCarbonModel, InfrastructureFootprint
from ethicalgates.core.adapters import AdapterRegistry, TransferSizeReader
from ethicalgates.core.errors import CarbonSourceError
from ethicalgates.models.carbon import CarbonEstimate, CarbonSourceKind
from ethicalgates.models.config import (
    ApiSourceConfig,
    CarbonConfig,
    InfrastructureConfig,
    PerformanceSourceConfig,
    TrafficConfig,
)
from ethicalgates.models.targets import Target

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
BYTES_PER_KB = 1024


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class ApiCarbonSource:
    """Queries an external carbon API (Website Carbon compatible).

    ``GET {endpoint}?bytes=<n>&green=<0|1>``; the response must carry
    ``statistics.co2.grid.grams`` (``renewable.grams`` for green hosting)
    and ``statistics.energy`` in kWh.

    A preconfigured ``httpx.Client`` may be injected; otherwise one is
    opened per call with *timeout*.
    """

    kind = CarbonSourceKind.API

    def __init__(
        self,
        config: ApiSourceConfig,
        sizes: TransferSizeReader,
        *,
        green_hosting: bool = False,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
        name: str = "api",
    ) -> None:
        self.config = config
        self.sizes = sizes
        self.green_hosting = green_hosting
        self.timeout = timeout
        self.client = client
        self.name = name

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _get(self, params: dict[str, Any]) -> httpx.Response:
        if self.client is not None:
            return self.client.get(
                self.config.endpoint, params=params, headers=self._headers()
            )
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(self.config.endpoint, params=params, headers=self._headers())

    def run(self, target: Target) -> CarbonEstimate:
        params = {
            "bytes": self.sizes.transfer_bytes(target),
            "green": 1 if self.green_hosting else 0,
        }
        try:
            response = self._get(params)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise CarbonSourceError(self.name, f"request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise CarbonSourceError(self.name, f"request failed: {exc}") from exc
        except ValueError as exc:
            raise CarbonSourceError(self.name, "response is not valid JSON") from exc

        try:
            stats = payload["statistics"]
            co2 = stats["co2"]["renewable" if self.green_hosting else "grid"]
            grams = float(co2["grams"])
            energy = float(stats["energy"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CarbonSourceError(
                self.name, f"unexpected response shape: missing {exc}"
            ) from exc
        if grams < 0 or energy < 0:
            raise CarbonSourceError(self.name, "negative carbon or energy in response")

        logger.debug("API estimate for %s: %.4f g", target.url, grams)
        return CarbonEstimate(
            source_name=self.name,
            source_kind=self.kind,
            carbon_grams=grams,
            energy_kwh=energy,
            confidence=self.config.confidence,
        )


# ---------------------------------------------------------------------------
# Performance (transfer size)
# ---------------------------------------------------------------------------


class PerformanceCarbonSource:
    """Estimates from bytes transferred per page view.

    ``carbon = MB x grams_per_mb`` (halved, by default, for green hosting);
    ``energy = carbon / grid_intensity``.
    """

    kind = CarbonSourceKind.PERFORMANCE

    def __init__(
        self,
        config: PerformanceSourceConfig,
        sizes: TransferSizeReader,
        *,
        green_hosting: bool = False,
        name: str = "performance",
    ) -> None:
        self.config = config
        self.sizes = sizes
        self.green_hosting = green_hosting
        self.name = name

    def run(self, target: Target) -> CarbonEstimate:
        transfer = self.sizes.transfer_bytes(target)
        if transfer < 0:
            raise CarbonSourceError(self.name, f"negative transfer size {transfer}")
        if self.config.grid_intensity_g_per_kwh <= 0:
            raise CarbonSourceError(self.name, "grid intensity must be > 0")

        carbon = transfer / BYTES_PER_MB * self.config.grams_per_mb
        if self.green_hosting:
            carbon *= self.config.green_hosting_multiplier
        return CarbonEstimate(
            source_name=self.name,
            source_kind=self.kind,
            carbon_grams=carbon,
            energy_kwh=carbon / self.config.grid_intensity_g_per_kwh,
            confidence=self.config.confidence,
        )


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class InfrastructureCarbonSource:
    """Per-page-view allocation of the bottom-up server model.

    The footprint is site-wide, so it is computed once and shared by every
    target.
    """

    kind = CarbonSourceKind.INFRASTRUCTURE

    def __init__(
        self,
        config: InfrastructureConfig,
        traffic: TrafficConfig,
        *,
        name: str = "infrastructure",
    ) -> None:
        self.model = InfrastructureCarbonModel(config, traffic)
        self.confidence = config.confidence
        self.name = name
        self._footprint: InfrastructureFootprint | None = None

    @property
    def footprint(self) -> InfrastructureFootprint:
        if self._footprint is None:
            self._footprint = self.model.compute()
        return self._footprint

    def run(self, target: Target) -> CarbonEstimate:
        footprint = self.footprint
        return CarbonEstimate(
            source_name=self.name,
            source_kind=self.kind,
            carbon_grams=footprint.carbon_grams_per_page_view,
            energy_kwh=footprint.energy_kwh_per_page_view,
            confidence=self.confidence,
        )


def register_default_carbon_sources(
    registry: AdapterRegistry,
    config: CarbonConfig,
    sizes: TransferSizeReader,
    *,
    timeout: float = 30.0,
    client: httpx.Client | None = None,
) -> AdapterRegistry:
    """Register the built-in source for every enabled carbon method."""
    enabled = config.methods.enabled()
    if CarbonSourceKind.API in enabled:
        registry.register_carbon_source(ApiCarbonSource(
            config.api,
            sizes,
            green_hosting=config.green_hosting,
            timeout=timeout,
            client=client,
        ))
    if CarbonSourceKind.PERFORMANCE in enabled:
        registry.register_carbon_source(PerformanceCarbonSource(
            config.performance, sizes, green_hosting=config.green_hosting,
        ))
    if CarbonSourceKind.INFRASTRUCTURE in enabled:
        registry.register_carbon_source(InfrastructureCarbonSource(
            config.infrastructure, config.traffic,
        ))
    return registry


def default_transfer_bytes(config: CarbonConfig) -> int:
    """Fallback page weight when no transfer size was recorded."""
    return int(config.performance.default_page_size_kb * BYTES_PER_KB)
