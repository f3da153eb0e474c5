"""Carbon half of the audit: source adapters, infrastructure model, combiner."""

from ethicalgates.carbon.combiner import combine_estimates, project, site_estimate
from ethicalgates.carbon.infrastructure import (
    InfrastructureCarbonModel,
    InfrastructureFootprint,
    ServerFootprint,
)
from ethicalgates.carbon.sources import (
    ApiCarbonSource,
    InfrastructureCarbonSource,
    PerformanceCarbonSource,
    default_transfer_bytes,
    register_default_carbon_sources,
)

__all__ = [
    "combine_estimates",
    "project",
    "site_estimate",
    "InfrastructureCarbonModel",
    "InfrastructureFootprint",
    "ServerFootprint",
    "ApiCarbonSource",
    "InfrastructureCarbonSource",
    "PerformanceCarbonSource",
    "default_transfer_bytes",
    "register_default_carbon_sources",
]
