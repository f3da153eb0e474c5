"""Runtime settings — env-driven, independent of the audit configuration.

Centralized settings using pydantic-settings for environment variable
support. Reads from a .env file and ETHICALGATES_* environment variables.

These settings only tune *how* an audit runs (logging, worker pool size,
timeouts, carbon API endpoint).  *What* is audited and how it is scored
lives in :class:`ethicalgates.models.config.AuditConfig`, which is passed
explicitly into every component.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class GateSettings(BaseSettings):
    """Runtime settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ETHICALGATES_LOG_LEVEL=DEBUG
        export ETHICALGATES_MAX_WORKERS=8
        export ETHICALGATES_CARBON_API_URL=https://carbon.internal/data
        export ETHICALGATES_CARBON_API_KEY=...

    Or via .env file::

        ETHICALGATES_AUDIT_TIMEOUT_SECONDS=600
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ETHICALGATES_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Worker pool and deadlines
    max_workers: int = 4
    adapter_timeout_seconds: float = 30.0
    audit_timeout_seconds: float = 300.0
    retries: int = 1
    retry_backoff_seconds: float = 0.5

    # Carbon estimation API; used when the audit config leaves them unset
    carbon_api_url: str = ""
    carbon_api_key: str = ""

    @property
    def is_ci(self) -> bool:
        """Whether running inside a CI pipeline."""
        return self.environment == "ci"


# Module-level singleton; import as `from ethicalgates.config import settings`
settings = GateSettings()
