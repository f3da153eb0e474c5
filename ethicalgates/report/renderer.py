"""Rich terminal renderer for ``EthicalAuditResult``.

Color scheme
------------
- green   : ok / passed / grades A+ to B
- yellow  : degraded / grades C+ to D
- red     : errored / failed / grade F
- dim     : skipped
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ethicalgates.models.results import (
    ActionItem,
    CarbonFootprintSummary,
    EthicalAuditResult,
    Grade,
    Priority,
)
from ethicalgates.models.violations import SectionStatus, Severity

_STATUS_MARKUP: dict[SectionStatus, str] = {
    SectionStatus.OK: "[green]ok[/green]",
    SectionStatus.DEGRADED: "[yellow]degraded[/yellow]",
    SectionStatus.ERRORED: "[bold red]errored[/bold red]",
    SectionStatus.SKIPPED: "[dim]skipped[/dim]",
}

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold red",
    Severity.SERIOUS: "red",
    Severity.MODERATE: "yellow",
    Severity.MINOR: "dim",
}

_PRIORITY_STYLES: dict[Priority, str] = {
    Priority.P0: "bold red",
    Priority.P1: "red",
    Priority.P2: "yellow",
    Priority.P3: "dim",
}


def _grade_style(grade: Grade) -> str:
    if grade in (Grade.A_PLUS, Grade.A, Grade.B_PLUS, Grade.B):
        return "bold green"
    if grade == Grade.F:
        return "bold red"
    return "bold yellow"


class AuditRenderer:
    """Renders an ``EthicalAuditResult`` as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    max_action_items:
        How many action items the summary lists.
    """

    def __init__(self, console: Console | None = None, max_action_items: int = 10) -> None:
        self.console = console or Console()
        self.max_action_items = max_action_items

    def render(self, result: EthicalAuditResult) -> Panel:
        """Build the summary panel for *result*."""
        overall = result.overall
        headline = Text.from_markup(
            f"[bold]Score:[/bold] {overall.score}/100  |  "
            f"[bold]Grade:[/bold] [{_grade_style(overall.grade)}]{overall.grade.value}"
            f"[/{_grade_style(overall.grade)}]  |  "
            f"[bold]Compliant:[/bold] "
            + ("[green]yes[/green]" if overall.compliant else "[bold red]no[/bold red]")
        )
        parts: list = [headline, Text(""), self._section_table(result)]

        if result.accessibility.status != SectionStatus.SKIPPED:
            parts += [Text(""), self._violation_table(result)]
        if result.carbon_footprint.breakdown:
            parts += [Text(""), self._breakdown_table(result.carbon_footprint)]
        if overall.gate.reasons:
            parts.append(Text(""))
            parts.append(Text.from_markup("[bold red]Quality gate failed:[/bold red]"))
            parts.extend(Text(f"  - {reason}") for reason in overall.gate.reasons)
        if result.action_items:
            parts += [Text(""), self._action_table(result.action_items)]
        if result.per_target_errors:
            parts.append(Text(""))
            parts.append(Text.from_markup(
                f"[yellow]{len(result.per_target_errors)} adapter call(s) failed; "
                f"results are partial.[/yellow]"
            ))

        return Panel(
            Group(*parts),
            title="[bold]Ethical Quality Gate[/bold]",
            subtitle=(
                f"{result.audit_id}  |  "
                f"{result.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
            ),
            border_style="green" if overall.gate.passed else "red",
            padding=(1, 2),
        )

    def _section_table(self, result: EthicalAuditResult) -> Table:
        table = Table(show_header=True, header_style="bold cyan", expand=True)
        table.add_column("Section", min_width=16)
        table.add_column("Status", justify="center")
        table.add_column("Score", justify="right")
        table.add_column("Details", min_width=30)

        a11y = result.accessibility
        a11y_score = f"{a11y.score:.1f}" if a11y.score is not None else "-"
        table.add_row(
            "Accessibility",
            _STATUS_MARKUP[a11y.status],
            a11y_score,
            f"WCAG {a11y.wcag_level.value}: "
            + ("conformant" if a11y.wcag_level_compliant else "not conformant")
            + f", {a11y.total_violations} violation(s)",
        )

        carbon = result.carbon_footprint
        carbon_score = f"{carbon.carbon_score:.1f}" if carbon.carbon_score is not None else "-"
        if carbon.estimate is not None:
            est = carbon.estimate
            details = (
                f"{est.per_page_view.carbon_grams:.3f} g/view "
                f"(budget {carbon.budget_grams_per_page_view:g} g), "
                f"{est.monthly.carbon_kg:.2f} kg/month, "
                f"{est.annual.equivalents.trees_required} tree(s)/year "
                f"via {', '.join(est.sources_used)}"
            )
        else:
            details = "no estimate"
        table.add_row("Carbon", _STATUS_MARKUP[carbon.status], carbon_score, details)
        return table

    def _violation_table(self, result: EthicalAuditResult) -> Table:
        table = Table(
            title="Violations by target", show_header=True, header_style="bold cyan", expand=True
        )
        table.add_column("Target", min_width=16)
        table.add_column("Status", justify="center")
        table.add_column("Score", justify="right")
        for severity in Severity:
            table.add_column(
                severity.value.capitalize(), justify="right", style=_SEVERITY_STYLES[severity]
            )
        for target in result.accessibility.targets:
            table.add_row(
                escape(target.target_name),
                _STATUS_MARKUP[target.status],
                f"{target.score:.1f}",
                *(str(target.counts.get(s)) for s in Severity),
            )
        return table

    def _breakdown_table(self, carbon: CarbonFootprintSummary) -> Table:
        table = Table(
            title="Carbon per page view", show_header=True, header_style="bold cyan", expand=True
        )
        table.add_column("Component", min_width=16)
        table.add_column("Grams", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Factors", min_width=30)
        for share in carbon.breakdown:
            table.add_row(
                share.component.value.replace("_", " "),
                f"{share.carbon_grams:.3f}",
                f"{share.percentage:.0f}%",
                ", ".join(share.factors),
            )
        return table

    def _action_table(self, items: list[ActionItem]) -> Table:
        table = Table(
            title="Action items", show_header=True, header_style="bold cyan", expand=True
        )
        table.add_column("Priority", justify="center")
        table.add_column("Item", min_width=30)
        table.add_column("Effort", justify="center")
        table.add_column("Occurrences", justify="right")
        for item in items[: self.max_action_items]:
            style = _PRIORITY_STYLES[item.priority]
            table.add_row(
                f"[{style}]{item.priority.value}[/{style}]",
                escape(item.title),
                item.effort_estimate.value,
                str(item.occurrences) if item.occurrences else "-",
            )
        return table

    def print_result(self, result: EthicalAuditResult) -> None:
        self.console.print(self.render(result))
