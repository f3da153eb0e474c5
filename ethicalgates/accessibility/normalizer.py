"""Violation Normalizer — maps tool-native findings to canonical violations.

Two passes:

1. **Map.**  Each tool has a mapper (selected by tool name) that turns a
   ``RawFinding`` into zero or more candidates and translates the tool's
   severity vocabulary through a per-tool lookup table.  A finding the
   mapper cannot read raises ``ToolExecutionError`` for its tool.
2. **Deduplicate.**  Candidates are grouped by ``(target_url, criterion)``.
   Inside a group a candidate joins the first cluster whose representative
   has the same selector, a similar selector, or a similar message
   (character-trigram Jaccard ratio).  A cluster becomes one ``Violation``
   with the maximum severity and the union of source tools.  Candidates
   without a criterion are never merged.

Candidates are sorted before clustering, so the output depends only on the
*set* of findings, not their arrival order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from ethicalgates.accessibility.wcag import (
    criterion_from_axe_tags,
    criterion_from_lighthouse_audit,
    criterion_from_pa11y_code,
    normalize_criterion,
)
from ethicalgates.carbon.insights import LIGHTHOUSE_PERFORMANCE_AUDITS
from ethicalgates.core.errors import ToolExecutionError
from ethicalgates.core.hasher import short_id
from ethicalgates.models.config import DedupConfig
from ethicalgates.models.targets import RawFinding, RawResult
from ethicalgates.models.violations import Severity, Violation, max_severity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-tool severity vocabularies
# ---------------------------------------------------------------------------

AXE_IMPACT: dict[str, Severity] = {
    "critical": Severity.CRITICAL,
    "serious": Severity.SERIOUS,
    "moderate": Severity.MODERATE,
    "minor": Severity.MINOR,
}

PA11Y_TYPE: dict[str, Severity] = {
    "error": Severity.SERIOUS,
    "warning": Severity.MODERATE,
    "notice": Severity.MINOR,
}

GENERIC_SEVERITY: dict[str, Severity] = {
    **AXE_IMPACT,
    "blocker": Severity.CRITICAL,
    "high": Severity.SERIOUS,
    "major": Severity.SERIOUS,
    "error": Severity.SERIOUS,
    "medium": Severity.MODERATE,
    "warning": Severity.MODERATE,
    "low": Severity.MINOR,
    "info": Severity.MINOR,
    "notice": Severity.MINOR,
}

_FALLBACK_SEVERITY = Severity.MODERATE

_LIGHTHOUSE_SKIP_MODES = frozenset({"notApplicable", "manual", "informative"})


class FindingCandidate(BaseModel):
    """A mapped finding before deduplication."""

    model_config = ConfigDict(frozen=True)

    tool: str
    rule_id: str
    wcag_criterion: str | None
    severity: Severity
    target_url: str
    element_selector: str = ""
    message: str = ""

    def sort_key(self) -> tuple:
        return (
            self.wcag_criterion or "",
            self.tool,
            self.element_selector,
            self.message,
            self.rule_id,
            -self.severity.rank,
        )


def _lookup(table: dict[str, Severity], value: Any, tool: str) -> Severity:
    key = str(value or "").strip().lower()
    severity = table.get(key)
    if severity is None:
        logger.warning(
            "Unmapped %s severity %r — treating as %s",
            tool,
            value,
            _FALLBACK_SEVERITY.value,
        )
        return _FALLBACK_SEVERITY
    return severity


def _selector_text(target: Any) -> str:
    # axe node targets are lists, nested for iframes/shadow DOM.
    if isinstance(target, (list, tuple)):
        return " ".join(_selector_text(part) for part in target)
    return str(target or "")


# ---------------------------------------------------------------------------
# Tool mappers
# ---------------------------------------------------------------------------


def _map_axe(finding: RawFinding, target_url: str) -> list[FindingCandidate]:
    fields = finding.fields
    rule_id = str(fields.get("id", ""))
    severity = _lookup(AXE_IMPACT, fields.get("impact"), finding.tool)
    criterion = criterion_from_axe_tags(list(fields.get("tags", [])))
    message = str(fields.get("help") or fields.get("description") or rule_id)
    nodes = fields.get("nodes") or [{}]
    return [
        FindingCandidate(
            tool=finding.tool,
            rule_id=rule_id,
            wcag_criterion=criterion,
            severity=severity,
            target_url=target_url,
            element_selector=_selector_text(node.get("target", "")),
            message=message,
        )
        for node in nodes
    ]


def _map_pa11y(finding: RawFinding, target_url: str) -> list[FindingCandidate]:
    fields = finding.fields
    code = str(fields.get("code", ""))
    return [
        FindingCandidate(
            tool=finding.tool,
            rule_id=code,
            wcag_criterion=criterion_from_pa11y_code(code),
            severity=_lookup(PA11Y_TYPE, fields.get("type"), finding.tool),
            target_url=target_url,
            element_selector=str(fields.get("selector", "")),
            message=str(fields.get("message", "")),
        )
    ]


def _lighthouse_severity(score: float) -> Severity:
    return Severity.SERIOUS if score <= 0 else Severity.MODERATE


def _map_lighthouse(finding: RawFinding, target_url: str) -> list[FindingCandidate]:
    fields = finding.fields
    score = fields.get("score")
    if fields.get("scoreDisplayMode") in _LIGHTHOUSE_SKIP_MODES or score is None:
        return []
    audit_id = str(fields.get("id", ""))
    if audit_id in LIGHTHOUSE_PERFORMANCE_AUDITS:
        return []  # read by carbon insights
    if float(score) >= 1:
        return []  # passing audit

    message = str(fields.get("title") or fields.get("description") or audit_id)
    items = (fields.get("details") or {}).get("items") or [{}]
    return [
        FindingCandidate(
            tool=finding.tool,
            rule_id=audit_id,
            wcag_criterion=criterion_from_lighthouse_audit(audit_id),
            severity=_lighthouse_severity(float(score)),
            target_url=target_url,
            element_selector=str((item.get("node") or {}).get("selector", "")),
            message=message,
        )
        for item in items
    ]


def _map_generic(finding: RawFinding, target_url: str) -> list[FindingCandidate]:
    fields = finding.fields
    return [
        FindingCandidate(
            tool=finding.tool,
            rule_id=str(fields.get("rule_id") or fields.get("id") or ""),
            wcag_criterion=normalize_criterion(fields.get("wcag_criterion")),
            severity=_lookup(GENERIC_SEVERITY, fields.get("severity"), finding.tool),
            target_url=str(fields.get("target_url") or target_url),
            element_selector=str(
                fields.get("element_selector") or fields.get("selector") or ""
            ),
            message=str(fields.get("message", "")),
        )
    ]


FindingMapper = Callable[[RawFinding, str], list[FindingCandidate]]

TOOL_MAPPERS: dict[str, FindingMapper] = {
    "axe": _map_axe,
    "pa11y": _map_pa11y,
    "lighthouse": _map_lighthouse,
    "generic": _map_generic,
}


def map_finding(finding: RawFinding, target_url: str) -> list[FindingCandidate]:
    """Map one raw finding with the mapper registered for its tool.

    Raises
    ------
    ToolExecutionError
        If the finding does not have the shape its tool's mapper expects.
    """
    mapper = TOOL_MAPPERS.get(finding.tool, _map_generic)
    try:
        return mapper(finding, target_url)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ToolExecutionError(
            finding.tool, f"malformed finding for {target_url}: {exc}"
        ) from exc


def map_result(result: RawResult) -> list[FindingCandidate]:
    """Map every finding one tool reported for one target."""
    candidates: list[FindingCandidate] = []
    for finding in result.findings:
        candidates.extend(map_finding(finding, result.target_url))
    return candidates


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


def _squash(text: str) -> str:
    return " ".join(text.lower().split())


def _trigrams(text: str) -> set[str]:
    squashed = _squash(text)
    if len(squashed) < 3:
        return {squashed} if squashed else set()
    return {squashed[i:i + 3] for i in range(len(squashed) - 2)}


def trigram_similarity(left: str, right: str) -> float:
    """Jaccard ratio of character trigram sets, 0.0 when either is empty."""
    a, b = _trigrams(left), _trigrams(right)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def _same_violation(
    representative: FindingCandidate,
    candidate: FindingCandidate,
    dedup: DedupConfig,
) -> bool:
    left = _squash(representative.element_selector)
    right = _squash(candidate.element_selector)
    if left and left == right:
        return True
    if left and right and (
        trigram_similarity(left, right) >= dedup.selector_similarity_threshold
    ):
        return True
    return (
        trigram_similarity(representative.message, candidate.message)
        >= dedup.message_similarity_threshold
    )


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------


def _cluster_to_violation(
    cluster: list[FindingCandidate], violation_id: str
) -> Violation:
    representative = cluster[0]
    return Violation(
        id=violation_id,
        source_tools=tuple(c.tool for c in cluster),
        rule_ids=tuple(c.rule_id for c in cluster if c.rule_id),
        wcag_criterion=representative.wcag_criterion,
        severity=max_severity(*(c.severity for c in cluster)),
        target_url=representative.target_url,
        element_selector=representative.element_selector,
        message=representative.message,
        occurrences=len(cluster),
    )


def deduplicate(
    candidates: Iterable[FindingCandidate], dedup: DedupConfig
) -> list[Violation]:
    """Collapse candidates into canonical violations."""
    ordered = sorted(candidates, key=lambda c: (c.target_url, *c.sort_key()))

    groups: dict[tuple[str, str], list[list[FindingCandidate]]] = {}
    ungrouped: list[FindingCandidate] = []
    for candidate in ordered:
        if candidate.wcag_criterion is None:
            ungrouped.append(candidate)
            continue
        clusters = groups.setdefault(
            (candidate.target_url, candidate.wcag_criterion), []
        )
        for cluster in clusters:
            if _same_violation(cluster[0], candidate, dedup):
                cluster.append(candidate)
                break
        else:
            clusters.append([candidate])

    violations: list[Violation] = []
    for (url, criterion), clusters in groups.items():
        for cluster in clusters:
            rep = cluster[0]
            vid = short_id("v", {
                "url": url,
                "criterion": criterion,
                "selector": rep.element_selector,
                "message": rep.message,
            })
            violations.append(_cluster_to_violation(cluster, vid))

    seen: dict[str, int] = {}
    for candidate in ungrouped:
        key = short_id("v", candidate.model_dump(mode="json"))
        ordinal = seen.get(key, 0)
        seen[key] = ordinal + 1
        vid = key if ordinal == 0 else f"{key}-{ordinal}"
        violations.append(_cluster_to_violation([candidate], vid))

    return violations


def normalize_findings(
    findings: Iterable[RawFinding],
    target_url: str,
    dedup: DedupConfig | None = None,
) -> list[Violation]:
    """Map and deduplicate the raw findings of every tool for one target."""
    dedup = dedup or DedupConfig()
    candidates: list[FindingCandidate] = []
    for finding in findings:
        candidates.extend(map_finding(finding, target_url))
    violations = deduplicate(candidates, dedup)
    logger.debug(
        "Normalized %d candidates into %d violations for %s",
        len(candidates),
        len(violations),
        target_url,
    )
    return violations


def normalize_results(
    results: Iterable[RawResult], dedup: DedupConfig | None = None
) -> list[Violation]:
    """Normalize every ``RawResult`` collected for one target."""
    candidates: list[FindingCandidate] = []
    for result in results:
        candidates.extend(map_result(result))
    return deduplicate(candidates, dedup or DedupConfig())
