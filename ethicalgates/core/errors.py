"""Error taxonomy for the audit engine.

Only ``ConfigurationError`` aborts an audit before any work begins.  Tool
and carbon-source failures are captured as structured metadata on the
result; ``CarbonAggregationError`` is raised only when carbon is mandatory
and every source failed.  A failed quality gate is a normal outcome
(``GateResult.passed is False``), never an exception.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ethicalgates.models.results import EthicalAuditResult


class EthicalGatesError(RuntimeError):
    """Base class for all ethicalgates errors."""


class ConfigurationError(EthicalGatesError, ValueError):
    """Raised before a run when the configuration is unusable.

    Collects every problem found so callers can report them together.
    """

    def __init__(self, problems: list[str] | str) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems: list[str] = list(problems)
        super().__init__("; ".join(self.problems))


class ToolExecutionError(EthicalGatesError):
    """Raised by an accessibility tool adapter that could not produce output."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(f"{tool}: {message}")


class CarbonSourceError(EthicalGatesError):
    """Raised by a carbon source that could not produce an estimate."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")


class CarbonAggregationError(EthicalGatesError):
    """Raised when carbon is mandatory and every carbon source failed.

    The partially assembled result is attached so callers can still
    report what completed.
    """

    def __init__(
        self, message: str, result: EthicalAuditResult | None = None
    ) -> None:
        self.result = result
        super().__init__(message)
