"""Tests for runtime settings — env-driven, independent of AuditConfig."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ethicalgates.cli.runner import load_config
from ethicalgates.config import GateSettings
from ethicalgates.config import settings as runtime_settings


class TestGateSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("ETHICALGATES_MAX_WORKERS", raising=False)
        monkeypatch.delenv("ETHICALGATES_CARBON_API_URL", raising=False)
        settings = GateSettings(_env_file=None)
        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.max_workers == 4
        assert settings.retries == 1
        assert settings.carbon_api_key == ""
        assert settings.carbon_api_url == ""

    def test_is_ci_false_by_default(self):
        assert GateSettings(_env_file=None).is_ci is False

    def test_is_ci_when_set(self):
        assert GateSettings(environment="ci", _env_file=None).is_ci is True

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ETHICALGATES_MAX_WORKERS", "8")
        monkeypatch.setenv("ETHICALGATES_AUDIT_TIMEOUT_SECONDS", "600")
        settings = GateSettings(_env_file=None)
        assert settings.max_workers == 8
        assert settings.audit_timeout_seconds == 600.0

    def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ETHICALGATES_CARBON_API_KEY", "secret-key")
        assert GateSettings(_env_file=None).carbon_api_key == "secret-key"

    def test_api_url_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ETHICALGATES_CARBON_API_URL", "https://carbon.internal/data")
        assert GateSettings(_env_file=None).carbon_api_url == "https://carbon.internal/data"


# ---------------------------------------------------------------------------
# Settings as fallbacks for the audit configuration
# ---------------------------------------------------------------------------


def _config_file(tmp_path: Path, api: dict | None = None) -> Path:
    path = tmp_path / "ethicalgates.json"
    path.write_text(json.dumps({
        "targets": [{"name": "home", "url": "https://example.com/"}],
        "carbon": {"api": api or {}},
    }), encoding="utf-8")
    return path


class TestSettingsFallback:
    def test_api_url_fills_unset_endpoint(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(runtime_settings, "carbon_api_url", "https://carbon.internal/data")
        config = load_config(_config_file(tmp_path))
        assert config.carbon.api.endpoint == "https://carbon.internal/data"

    def test_configured_endpoint_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(runtime_settings, "carbon_api_url", "https://carbon.internal/data")
        config = load_config(_config_file(tmp_path, {"endpoint": "https://carbon.example/v2"}))
        assert config.carbon.api.endpoint == "https://carbon.example/v2"

    def test_default_endpoint_without_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(runtime_settings, "carbon_api_url", "")
        config = load_config(_config_file(tmp_path))
        assert config.carbon.api.endpoint == "https://api.websitecarbon.com/data"

    def test_api_key_and_url_together(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(runtime_settings, "carbon_api_url", "https://carbon.internal/data")
        monkeypatch.setattr(runtime_settings, "carbon_api_key", "k-123")
        api = load_config(_config_file(tmp_path)).carbon.api
        assert api.endpoint == "https://carbon.internal/data"
        assert api.api_key == "k-123"

    def test_defaults_path_uses_settings(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(runtime_settings, "carbon_api_url", "https://carbon.internal/data")
        assert load_config(None).carbon.api.endpoint == "https://carbon.internal/data"
