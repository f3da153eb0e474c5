"""Infrastructure Carbon Model — bottom-up server energy and carbon.

Units, for every server:

    power_w        = (cores x per_core_tdp_w x utilization
                      + memory_gb x per_gb_w
                      + storage_tb x storage_w_per_tb) x PUE
    energy_kwh/mo  = power_w / 1000 x hours_per_month      (W -> kW, x h)
    carbon_g/mo    = energy_kwh/mo x intensity_g_per_kwh

Monthly totals are summed over servers and allocated to one page view by
dividing by monthly page views.  With a CDN, the cache-hit share of
requests is charged ``cached_request_grams`` instead of the origin cost.

Zero or negative utilization, traffic, cores, PUE or hours are
configuration errors, never clamped.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from ethicalgates.core.errors import ConfigurationError
from ethicalgates.models.config import InfrastructureConfig, ServerSpec, TrafficConfig

logger = logging.getLogger(__name__)

WATTS_PER_KILOWATT = 1000.0
GB_PER_TB = 1000.0


class ServerFootprint(BaseModel):
    """Monthly draw of one server."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    power_watts: float
    energy_kwh_per_month: float
    carbon_grams_per_month: float


class InfrastructureFootprint(BaseModel):
    """Site-wide monthly totals and the per-page-view allocation."""

    model_config = ConfigDict(frozen=True)

    servers: list[ServerFootprint]
    carbon_intensity_g_per_kwh: float
    energy_kwh_per_month: float
    carbon_grams_per_month: float
    carbon_grams_per_page_view: float
    energy_kwh_per_page_view: float

    @property
    def carbon_grams_by_type(self) -> dict[str, float]:
        totals: dict[str, float] = {}
        for server in self.servers:
            totals[server.type] = totals.get(server.type, 0.0) + server.carbon_grams_per_month
        return totals


def validate_infrastructure(
    infra: InfrastructureConfig, traffic: TrafficConfig
) -> list[str]:
    """Return every problem with the infrastructure inputs (empty if fine)."""
    problems: list[str] = []
    if not infra.servers:
        problems.append("infrastructure: at least one server must be configured")
    if traffic.monthly_page_views <= 0:
        problems.append(
            f"traffic.monthly_page_views must be > 0, got {traffic.monthly_page_views}"
        )
    if infra.pue < 1.0:
        problems.append(f"infrastructure.pue must be >= 1.0, got {infra.pue}")
    if infra.per_core_tdp_watts <= 0:
        problems.append("infrastructure.per_core_tdp_watts must be > 0")
    if infra.per_gb_memory_watts < 0:
        problems.append("infrastructure.per_gb_memory_watts must be >= 0")
    if infra.carbon_intensity_g_per_kwh is not None and infra.carbon_intensity_g_per_kwh < 0:
        problems.append("infrastructure.carbon_intensity_g_per_kwh must be >= 0")
    if infra.cdn.enabled:
        if not 0.0 <= infra.cdn.cache_hit_rate <= 1.0:
            problems.append("infrastructure.cdn.cache_hit_rate must be within [0, 1]")
        if infra.cdn.cached_request_grams < 0 or infra.cdn.cached_request_kwh < 0:
            problems.append("infrastructure.cdn cached request costs must be >= 0")

    for server in infra.servers:
        prefix = f"infrastructure.servers[{server.name}]"
        if not 0.0 < server.utilization_rate <= 1.0:
            problems.append(
                f"{prefix}.utilization_rate must be within (0, 1], got {server.utilization_rate}"
            )
        if not 0.0 < server.hours_per_month <= 744.0:
            problems.append(
                f"{prefix}.hours_per_month must be within (0, 744], got {server.hours_per_month}"
            )
        if server.cpu is not None:
            if server.cpu.cores <= 0:
                problems.append(f"{prefix}.cpu.cores must be > 0, got {server.cpu.cores}")
            if server.cpu.tdp_watts is not None and server.cpu.tdp_watts <= 0:
                problems.append(f"{prefix}.cpu.tdp_watts must be > 0")
        if server.memory is not None and server.memory.size_gb < 0:
            problems.append(f"{prefix}.memory.size_gb must be >= 0")
        if server.storage is not None:
            if server.storage.size_gb < 0:
                problems.append(f"{prefix}.storage.size_gb must be >= 0")
            if server.storage.type not in infra.storage_watts_per_tb:
                problems.append(
                    f"{prefix}.storage.type {server.storage.type!r} has no watts-per-TB coefficient"
                )
        if server.cpu is None and server.memory is None and server.storage is None:
            problems.append(f"{prefix} declares no cpu, memory or storage")
    return problems


class InfrastructureCarbonModel:
    """Computes the infrastructure footprint for a validated configuration.

    Construction validates the inputs and raises ``ConfigurationError``
    listing every problem, so a bad model is rejected before any audit work
    starts.
    """

    def __init__(self, infra: InfrastructureConfig, traffic: TrafficConfig) -> None:
        problems = validate_infrastructure(infra, traffic)
        if problems:
            raise ConfigurationError(problems)
        self.infra = infra
        self.traffic = traffic

    @property
    def carbon_intensity(self) -> float:
        """Grid intensity in gCO2/kWh for the configured region and provider."""
        if self.infra.carbon_intensity_g_per_kwh is not None:
            return self.infra.carbon_intensity_g_per_kwh
        region = self.infra.regional_intensity.get(self.infra.region, {})
        intensity = region.get(self.infra.cloud_provider)
        if intensity is None:
            logger.warning(
                "No carbon intensity for %s/%s — using fallback %.0f gCO2/kWh",
                self.infra.cloud_provider,
                self.infra.region,
                self.infra.fallback_intensity_g_per_kwh,
            )
            return self.infra.fallback_intensity_g_per_kwh
        return intensity

    def server_power_watts(self, server: ServerSpec) -> float:
        infra = self.infra
        cpu_watts = 0.0
        if server.cpu is not None:
            per_core = (
                server.cpu.tdp_watts / server.cpu.cores
                if server.cpu.tdp_watts is not None
                else infra.per_core_tdp_watts
            )
            cpu_watts = server.cpu.cores * per_core * server.utilization_rate
        memory_watts = (
            server.memory.size_gb * infra.per_gb_memory_watts
            if server.memory is not None
            else 0.0
        )
        storage_watts = 0.0
        if server.storage is not None:
            storage_watts = (
                server.storage.size_gb / GB_PER_TB
                * infra.storage_watts_per_tb[server.storage.type]
            )
        return (cpu_watts + memory_watts + storage_watts) * infra.pue

    def server_footprint(self, server: ServerSpec) -> ServerFootprint:
        power = self.server_power_watts(server)
        energy_kwh = power / WATTS_PER_KILOWATT * server.hours_per_month
        return ServerFootprint(
            name=server.name,
            type=server.type,
            power_watts=power,
            energy_kwh_per_month=energy_kwh,
            carbon_grams_per_month=energy_kwh * self.carbon_intensity,
        )

    def _allocate(self, monthly_total: float, cached_cost: float) -> float:
        per_view = monthly_total / self.traffic.monthly_page_views
        cdn = self.infra.cdn
        if not cdn.enabled:
            return per_view
        hit = cdn.cache_hit_rate
        return per_view * (1.0 - hit) + cached_cost * hit

    def compute(self) -> InfrastructureFootprint:
        servers = [self.server_footprint(s) for s in self.infra.servers]
        energy = sum(s.energy_kwh_per_month for s in servers)
        carbon = sum(s.carbon_grams_per_month for s in servers)
        footprint = InfrastructureFootprint(
            servers=servers,
            carbon_intensity_g_per_kwh=self.carbon_intensity,
            energy_kwh_per_month=energy,
            carbon_grams_per_month=carbon,
            carbon_grams_per_page_view=self._allocate(
                carbon, self.infra.cdn.cached_request_grams
            ),
            energy_kwh_per_page_view=self._allocate(
                energy, self.infra.cdn.cached_request_kwh
            ),
        )
        logger.debug(
            "Infrastructure footprint: %.1f g/month over %d servers, %.4f g/page view",
            footprint.carbon_grams_per_month,
            len(servers),
            footprint.carbon_grams_per_page_view,
        )
        return footprint
