"""Pluggable tool adapter and carbon source backends for the orchestrator.

Defines the ``ToolAdapter``, ``CarbonSource`` and ``TransferSizeReader``
Protocols that backends must satisfy, the ``AdapterRegistry`` the
orchestrator selects from, and ``RecordedToolAdapter``, which replays tool
output captured by an earlier run (CI artifacts, fixtures).

Adapters are synchronous and may block; the orchestrator runs every call on
its worker pool.  An adapter signals failure by raising — the orchestrator
records the failure and carries on.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from ethicalgates.core.errors import ToolExecutionError
from ethicalgates.models.carbon import CarbonEstimate, CarbonSourceKind
from ethicalgates.models.config import AccessibilityConfig, CarbonConfig
from ethicalgates.models.targets import RawFinding, RawResult, Target

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class ToolAdapter(Protocol):
    """Protocol for accessibility tool backends.

    Any object with a ``name`` and a ``run(target) -> RawResult`` method
    satisfies this protocol.
    """

    name: str

    def run(self, target: Target) -> RawResult:
        """Audit *target* and return the tool's native findings.

        Raises
        ------
        ToolExecutionError
            If the tool could not produce output.
        """
        ...


@runtime_checkable
class CarbonSource(Protocol):
    """Protocol for carbon estimation backends."""

    name: str
    kind: CarbonSourceKind

    def run(self, target: Target) -> CarbonEstimate:
        """Estimate per-page-view carbon for *target*.

        Raises
        ------
        CarbonSourceError
            If no estimate could be produced.
        """
        ...


@runtime_checkable
class TransferSizeReader(Protocol):
    """Supplies the bytes transferred for one page view of a target."""

    def transfer_bytes(self, target: Target) -> int:
        ...


# ---------------------------------------------------------------------------
# Default implementations
# ---------------------------------------------------------------------------


class RecordedTransferSizes:
    """Transfer sizes captured by a profiler, with a configured fallback.

    Targets with no recording are charged ``default_bytes``.
    """

    def __init__(self, sizes: dict[str, float] | None = None, default_bytes: int = 0) -> None:
        self.sizes = dict(sizes or {})
        self.default_bytes = default_bytes

    @classmethod
    def from_results(
        cls, results: list[RawResult], default_bytes: int = 0
    ) -> RecordedTransferSizes:
        """Collect ``metrics["transfer_bytes"]`` from tool results."""
        sizes: dict[str, float] = {}
        for result in results:
            value = result.metrics.get("transfer_bytes")
            if value is not None:
                sizes[result.target_url] = value
        return cls(sizes, default_bytes)

    def transfer_bytes(self, target: Target) -> int:
        value = self.sizes.get(target.url)
        if value is None:
            logger.debug(
                "No recorded transfer size for %s — using default %d bytes",
                target.url,
                self.default_bytes,
            )
            return self.default_bytes
        return int(value)


class RecordedToolAdapter:
    """Replays recorded tool-native findings keyed by target URL.

    Parameters
    ----------
    name:
        Tool name, which selects the normalizer mapper (``axe``, ``pa11y``,
        ``lighthouse`` or anything else for the generic mapper).
    findings:
        ``{url: [finding dict, ...]}`` in the tool's own shape.
    metrics:
        Optional ``{url: {metric: value}}`` measurements.
    strict:
        When true, a URL with no recording is a tool failure instead of a
        clean run with no findings.
    """

    def __init__(
        self,
        name: str,
        findings: dict[str, list[dict[str, Any]]],
        metrics: dict[str, dict[str, float]] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self.name = name
        self.findings = findings
        self.metrics = metrics or {}
        self.strict = strict

    def run(self, target: Target) -> RawResult:
        if target.url not in self.findings:
            if self.strict:
                raise ToolExecutionError(
                    self.name, f"no recorded output for {target.url}"
                )
            recorded: list[dict[str, Any]] = []
        else:
            recorded = self.findings[target.url]
        if not isinstance(recorded, list):
            raise ToolExecutionError(
                self.name,
                f"recorded output for {target.url} must be a list, got {type(recorded).__name__}",
            )
        findings: list[RawFinding] = []
        for entry in recorded:
            if not isinstance(entry, dict):
                raise ToolExecutionError(
                    self.name, f"malformed finding for {target.url}: {entry!r}"
                )
            findings.append(RawFinding(tool=self.name, fields=entry))
        return RawResult(
            tool=self.name,
            target_url=target.url,
            findings=findings,
            metrics=self.metrics.get(target.url, {}),
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class AdapterRegistry:
    """Named tool adapters and kind-tagged carbon sources.

    Selection follows configuration toggles; the orchestrator never picks
    adapters by inspecting types.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolAdapter] = {}
        self._carbon_sources: dict[CarbonSourceKind, CarbonSource] = {}

    def register_tool(self, adapter: ToolAdapter) -> None:
        if not isinstance(adapter, ToolAdapter):
            raise TypeError(f"{adapter!r} does not satisfy the ToolAdapter protocol")
        if adapter.name in self._tools:
            logger.warning("Replacing tool adapter %r", adapter.name)
        self._tools[adapter.name] = adapter

    def register_carbon_source(self, source: CarbonSource) -> None:
        if not isinstance(source, CarbonSource):
            raise TypeError(f"{source!r} does not satisfy the CarbonSource protocol")
        if source.kind in self._carbon_sources:
            logger.warning("Replacing carbon source for %s", source.kind.value)
        self._carbon_sources[source.kind] = source

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._tools)

    @property
    def carbon_kinds(self) -> list[CarbonSourceKind]:
        return list(self._carbon_sources)

    def get_tool(self, name: str) -> ToolAdapter:
        """Return the adapter registered as *name*.

        Raises ``KeyError`` if nothing is registered under that name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise KeyError(
                f"Unknown tool {name!r}. Registered tools: {self.tool_names}"
            ) from None

    def get_carbon_source(self, kind: CarbonSourceKind) -> CarbonSource:
        try:
            return self._carbon_sources[kind]
        except KeyError:
            raise KeyError(
                f"No carbon source registered for {kind.value!r}. "
                f"Registered: {[k.value for k in self.carbon_kinds]}"
            ) from None

    def select_tools(self, config: AccessibilityConfig) -> list[ToolAdapter]:
        """Adapters for every enabled tool, in configuration order."""
        return [self.get_tool(name) for name in config.enabled_tools()]

    def select_carbon_sources(self, config: CarbonConfig) -> list[CarbonSource]:
        """Enabled carbon sources in trust-priority order."""
        enabled = set(config.methods.enabled())
        ordered = [k for k in config.trust_priority if k in enabled]
        ordered += [k for k in CarbonSourceKind if k in enabled and k not in ordered]
        return [self.get_carbon_source(kind) for kind in ordered]
