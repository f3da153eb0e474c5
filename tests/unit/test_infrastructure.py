"""Unit tests for the Infrastructure Carbon Model."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from ethicalgates.carbon.infrastructure import InfrastructureCarbonModel
from ethicalgates.core.errors import ConfigurationError
from ethicalgates.models.config import (
    CdnConfig,
    CpuSpec,
    InfrastructureConfig,
    MemorySpec,
    ServerSpec,
    StorageSpec,
    TrafficConfig,
)


def _server(**overrides: Any) -> ServerSpec:
    defaults: dict[str, Any] = {
        "name": "web-1",
        "cpu": CpuSpec(cores=4),
        "memory": MemorySpec(size_gb=16),
        "utilization_rate": 0.5,
    }
    defaults.update(overrides)
    return ServerSpec(**defaults)


def _infra(servers: list[ServerSpec] | None = None, **overrides: Any) -> InfrastructureConfig:
    defaults: dict[str, Any] = {
        "servers": servers if servers is not None else [_server()],
        "carbon_intensity_g_per_kwh": 400.0,
    }
    defaults.update(overrides)
    return InfrastructureConfig(**defaults)


TRAFFIC = TrafficConfig(monthly_page_views=10_000)


class TestPowerAndEnergy:
    def test_single_server_footprint(self):
        # (4 cores x 15 W x 0.5 + 16 GB x 0.5 W) x PUE 1.2 = 45.6 W
        footprint = InfrastructureCarbonModel(_infra(), TRAFFIC).compute()
        [server] = footprint.servers
        assert server.power_watts == pytest.approx(45.6)
        # 45.6 W / 1000 x 730 h = 33.288 kWh; x 400 g/kWh = 13315.2 g
        assert server.energy_kwh_per_month == pytest.approx(33.288)
        assert server.carbon_grams_per_month == pytest.approx(13315.2)
        assert footprint.carbon_grams_per_page_view == pytest.approx(1.33152)
        assert footprint.energy_kwh_per_page_view == pytest.approx(0.0033288)

    def test_storage_term(self):
        server = _server(storage=StorageSpec(size_gb=1000, type="ssd"))
        model = InfrastructureCarbonModel(_infra([server]), TRAFFIC)
        # + 1 TB x 2 W, x PUE 1.2
        assert model.server_power_watts(server) == pytest.approx(48.0)

    def test_package_tdp_overrides_per_core_default(self):
        server = _server(cpu=CpuSpec(cores=4, tdp_watts=100), memory=None)
        model = InfrastructureCarbonModel(_infra([server]), TRAFFIC)
        assert model.server_power_watts(server) == pytest.approx(100 * 0.5 * 1.2)

    def test_totals_sum_over_servers(self):
        servers = [_server(name="web-1"), _server(name="db-1", type="database")]
        footprint = InfrastructureCarbonModel(_infra(servers), TRAFFIC).compute()
        assert footprint.carbon_grams_per_month == pytest.approx(2 * 13315.2)
        assert footprint.carbon_grams_by_type == {
            "compute": pytest.approx(13315.2),
            "database": pytest.approx(13315.2),
        }

    def test_cdn_cache_hits_use_cached_cost(self):
        infra = _infra(cdn=CdnConfig(enabled=True, cache_hit_rate=0.8, cached_request_grams=0.01))
        footprint = InfrastructureCarbonModel(infra, TRAFFIC).compute()
        assert footprint.carbon_grams_per_page_view == pytest.approx(1.33152 * 0.2 + 0.8 * 0.01)

    def test_disabled_cdn_is_ignored(self):
        infra = _infra(cdn=CdnConfig(enabled=False, cache_hit_rate=0.9))
        footprint = InfrastructureCarbonModel(infra, TRAFFIC).compute()
        assert footprint.carbon_grams_per_page_view == pytest.approx(1.33152)


class TestCarbonIntensity:
    def test_override_wins(self):
        assert InfrastructureCarbonModel(_infra(), TRAFFIC).carbon_intensity == 400.0

    def test_regional_table(self):
        infra = _infra(carbon_intensity_g_per_kwh=None, region="us-east-1", cloud_provider="aws")
        assert InfrastructureCarbonModel(infra, TRAFFIC).carbon_intensity == 415.0

    def test_unknown_region_falls_back(self, caplog):
        infra = _infra(carbon_intensity_g_per_kwh=None, region="mars-1")
        with caplog.at_level(logging.WARNING):
            intensity = InfrastructureCarbonModel(infra, TRAFFIC).carbon_intensity
        assert intensity == 500.0
        assert "mars-1" in caplog.text


class TestValidation:
    @pytest.mark.parametrize("utilization", [0.0, -0.2, 1.5])
    def test_bad_utilization_is_rejected(self, utilization):
        with pytest.raises(ConfigurationError, match="utilization_rate"):
            InfrastructureCarbonModel(_infra([_server(utilization_rate=utilization)]), TRAFFIC)

    @pytest.mark.parametrize("views", [0, -100])
    def test_bad_traffic_is_rejected(self, views):
        with pytest.raises(ConfigurationError, match="monthly_page_views"):
            InfrastructureCarbonModel(_infra(), TrafficConfig(monthly_page_views=views))

    def test_zero_cores_is_rejected(self):
        with pytest.raises(ConfigurationError, match="cores"):
            InfrastructureCarbonModel(_infra([_server(cpu=CpuSpec(cores=0))]), TRAFFIC)

    def test_pue_below_one_is_rejected(self):
        with pytest.raises(ConfigurationError, match="pue"):
            InfrastructureCarbonModel(_infra(pue=0.9), TRAFFIC)

    def test_no_servers_is_rejected(self):
        with pytest.raises(ConfigurationError, match="at least one server"):
            InfrastructureCarbonModel(_infra([]), TRAFFIC)

    def test_unknown_storage_type_is_rejected(self):
        server = _server(storage=StorageSpec(size_gb=100, type="tape"))
        with pytest.raises(ConfigurationError, match="tape"):
            InfrastructureCarbonModel(_infra([server]), TRAFFIC)

    def test_all_problems_reported_together(self):
        with pytest.raises(ConfigurationError) as exc_info:
            InfrastructureCarbonModel(
                _infra([_server(utilization_rate=0)], pue=0.5),
                TrafficConfig(monthly_page_views=0),
            )
        assert len(exc_info.value.problems) == 3
