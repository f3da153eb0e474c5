"""Shared plumbing for the audit commands.

Loads the JSON configuration and recorded tool output, builds the adapter
registry, runs the orchestrator and maps outcomes onto the exit-code
contract:

- 0 : audit ran and the result is compliant
- 1 : configuration or runtime error
- 2 : audit ran but the quality gate failed
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from ethicalgates.carbon.sources import default_transfer_bytes, register_default_carbon_sources
from ethicalgates.config import settings
from ethicalgates.core.adapters import AdapterRegistry, RecordedToolAdapter, RecordedTransferSizes
from ethicalgates.core.errors import (
    CarbonAggregationError,
    ConfigurationError,
    EthicalGatesError,
)
from ethicalgates.core.orchestrator import AuditOrchestrator
from ethicalgates.models.config import AuditConfig, ExecutionConfig
from ethicalgates.models.results import EthicalAuditResult
from ethicalgates.models.targets import Target
from ethicalgates.models.violations import WcagLevel
from ethicalgates.report.renderer import AuditRenderer

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_GATE_FAILED = 2


def setup_logging(level: str | None = None) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=False)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _execution_from_settings() -> ExecutionConfig:
    return ExecutionConfig(
        max_workers=settings.max_workers,
        adapter_timeout_seconds=settings.adapter_timeout_seconds,
        audit_timeout_seconds=settings.audit_timeout_seconds,
        retries=settings.retries,
        retry_backoff_seconds=settings.retry_backoff_seconds,
    )


def parse_target(value: str) -> Target:
    """``name=https://...`` or a bare URL (named after its host)."""
    if "=" in value and not value.startswith(("http://", "https://")):
        name, _, url = value.partition("=")
    else:
        url = value
        name = url.split("://", 1)[-1].split("/", 1)[0] or url
    return Target(name=name.strip(), url=url.strip())


def load_config(
    config_path: Path | None,
    *,
    targets: list[str] | None = None,
    wcag_level: WcagLevel | None = None,
    fail_on_violation: bool | None = None,
) -> AuditConfig:
    """Read the JSON config (or defaults) and apply command-line overrides.

    Raises
    ------
    ConfigurationError
        If the file is missing or does not match the configuration model.
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigurationError(f"config file not found: {config_path}")
        try:
            config = AuditConfig.model_validate_json(config_path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            raise ConfigurationError([
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]) from exc
    else:
        config = AuditConfig(execution=_execution_from_settings())

    updates: dict[str, Any] = {}
    if targets:
        try:
            updates["targets"] = [parse_target(t) for t in targets]
        except ValidationError as exc:
            raise ConfigurationError(f"invalid --target: {exc.errors()[0]['msg']}") from exc
    if wcag_level is not None:
        updates["accessibility"] = config.accessibility.model_copy(
            update={"wcag_level": wcag_level}
        )
    if fail_on_violation is not None:
        updates["quality_gates"] = config.quality_gates.model_copy(
            update={"fail_on_violation": fail_on_violation}
        )
    api = config.carbon.api
    api_updates: dict[str, Any] = {}
    if not api.api_key and settings.carbon_api_key:
        api_updates["api_key"] = settings.carbon_api_key
    if "endpoint" not in api.model_fields_set and settings.carbon_api_url:
        api_updates["endpoint"] = settings.carbon_api_url
    if api_updates:
        updates["carbon"] = config.carbon.model_copy(update={
            "api": api.model_copy(update=api_updates),
        })
    return config.model_copy(update=updates) if updates else config


class RecordedFindings:
    """Tool output captured by an earlier run.

    File shape::

        {
          "tools": {"axe": {"https://example.com/": [ ...axe results... ]}},
          "transfer_bytes": {"https://example.com/": 1843200}
        }
    """

    def __init__(
        self,
        tools: dict[str, dict[str, list[dict[str, Any]]]] | None = None,
        transfer_bytes: dict[str, float] | None = None,
    ) -> None:
        self.tools = tools or {}
        self.transfer_bytes = transfer_bytes or {}

    @classmethod
    def load(cls, path: Path | None) -> RecordedFindings:
        if path is None:
            return cls()
        if not path.exists():
            raise ConfigurationError(f"findings file not found: {path}")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"findings file is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("findings file must contain a JSON object")
        tools = payload.get("tools", {})
        transfer = payload.get("transfer_bytes", {})
        if not isinstance(tools, dict) or not all(isinstance(v, dict) for v in tools.values()):
            raise ConfigurationError("findings.tools must map tool -> {url: [findings]}")
        if not isinstance(transfer, dict):
            raise ConfigurationError("findings.transfer_bytes must map url -> bytes")
        return cls(tools, transfer)


def restrict_tools(config: AuditConfig, recorded: RecordedFindings) -> AuditConfig:
    """Disable enabled tools that have no recorded output."""
    tools = dict(config.accessibility.tools)
    for name, toggle in tools.items():
        if toggle.enabled and name not in recorded.tools:
            logger.info("No recorded output for %s — disabling it for this run", name)
            tools[name] = toggle.model_copy(update={"enabled": False})
    if not any(t.enabled for t in tools.values()):
        raise ConfigurationError(
            "accessibility: no recorded output for any enabled tool; pass --findings"
        )
    return config.model_copy(update={
        "accessibility": config.accessibility.model_copy(update={"tools": tools}),
    })


def build_registry(
    config: AuditConfig,
    recorded: RecordedFindings,
    *,
    carbon: bool = True,
) -> AdapterRegistry:
    registry = AdapterRegistry()
    for name, findings in recorded.tools.items():
        registry.register_tool(RecordedToolAdapter(name, findings))
    if carbon:
        sizes = RecordedTransferSizes(
            recorded.transfer_bytes, default_transfer_bytes(config.carbon)
        )
        register_default_carbon_sources(
            registry,
            config.carbon,
            sizes,
            timeout=config.execution.adapter_timeout_seconds,
        )
    return registry


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


def write_output(result: EthicalAuditResult, output: Path | None) -> None:
    if output is None:
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    console.print(f"[dim]Result written to {output}[/dim]")


def report_configuration_error(exc: ConfigurationError) -> None:
    err_console.print("[bold red]Configuration error:[/bold red]")
    for problem in exc.problems:
        err_console.print(f"  - {problem}")


def run_audit(
    *,
    config_path: Path | None,
    findings_path: Path | None,
    targets: list[str] | None,
    wcag_level: WcagLevel | None,
    fail_on_violation: bool | None,
    output: Path | None,
    accessibility: bool = True,
    carbon: bool = True,
) -> None:
    """Run one audit and exit with the contract's exit code."""
    setup_logging()
    try:
        config = load_config(
            config_path,
            targets=targets,
            wcag_level=wcag_level,
            fail_on_violation=fail_on_violation,
        )
        recorded = RecordedFindings.load(findings_path)
        if accessibility:
            config = restrict_tools(config, recorded)
        registry = build_registry(config, recorded, carbon=carbon)
        result = AuditOrchestrator(config, registry).run(
            accessibility=accessibility, carbon=carbon
        )
    except ConfigurationError as exc:
        report_configuration_error(exc)
        raise typer.Exit(code=EXIT_ERROR) from exc
    except CarbonAggregationError as exc:
        err_console.print(f"[bold red]Carbon aggregation failed:[/bold red] {exc}")
        if exc.result is not None:
            write_output(exc.result, output)
        raise typer.Exit(code=EXIT_ERROR) from exc
    except EthicalGatesError as exc:
        err_console.print(f"[bold red]Audit error:[/bold red] {exc}")
        raise typer.Exit(code=EXIT_ERROR) from exc

    AuditRenderer(console=console).print_result(result)
    write_output(result, output)

    if not result.overall.compliant and config.quality_gates.fail_on_violation:
        raise typer.Exit(code=EXIT_GATE_FAILED)
