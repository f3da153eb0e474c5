"""WCAG 2.1 success criteria by conformance level, and criterion extraction.

Each tool tags findings differently: axe uses tags such as ``wcag143``,
pa11y embeds ``1_4_3`` in its sniff code, and Lighthouse audits carry no
criterion at all (mapped here by audit id).  All are reduced to the dotted
form ``"1.4.3"``.
"""

from __future__ import annotations

import re

from ethicalgates.models.violations import WcagLevel

_LEVEL_A: frozenset[str] = frozenset({
    "1.1.1", "1.2.1", "1.2.2", "1.2.3", "1.3.1", "1.3.2", "1.3.3",
    "1.4.1", "1.4.2", "2.1.1", "2.1.2", "2.1.4", "2.2.1", "2.2.2",
    "2.3.1", "2.4.1", "2.4.2", "2.4.3", "2.4.4", "2.5.1", "2.5.2",
    "2.5.3", "2.5.4", "3.1.1", "3.2.1", "3.2.2", "3.3.1", "3.3.2",
    "4.1.1", "4.1.2",
})

_LEVEL_AA_ONLY: frozenset[str] = frozenset({
    "1.2.4", "1.2.5", "1.3.4", "1.3.5", "1.4.3", "1.4.4", "1.4.5",
    "1.4.10", "1.4.11", "1.4.12", "1.4.13", "2.4.5", "2.4.6", "2.4.7",
    "3.1.2", "3.2.3", "3.2.4", "3.3.3", "3.3.4", "4.1.3",
})

_LEVEL_AAA_ONLY: frozenset[str] = frozenset({
    "1.2.6", "1.2.7", "1.2.8", "1.2.9", "1.3.6", "1.4.6", "1.4.7",
    "1.4.8", "1.4.9", "2.1.3", "2.2.3", "2.2.4", "2.2.5", "2.2.6",
    "2.3.2", "2.3.3", "2.4.8", "2.4.9", "2.4.10", "2.5.5", "2.5.6",
    "3.1.3", "3.1.4", "3.1.5", "3.1.6", "3.2.5", "3.3.5", "3.3.6",
})

# Criteria a page must satisfy to conform at each level (levels are cumulative).
REQUIRED_CRITERIA: dict[WcagLevel, frozenset[str]] = {
    WcagLevel.A: _LEVEL_A,
    WcagLevel.AA: _LEVEL_A | _LEVEL_AA_ONLY,
    WcagLevel.AAA: _LEVEL_A | _LEVEL_AA_ONLY | _LEVEL_AAA_ONLY,
}

# Lighthouse accessibility audit id -> criterion.
LIGHTHOUSE_AUDIT_CRITERIA: dict[str, str] = {
    "color-contrast": "1.4.3",
    "image-alt": "1.1.1",
    "input-image-alt": "1.1.1",
    "object-alt": "1.1.1",
    "button-name": "4.1.2",
    "link-name": "2.4.4",
    "label": "4.1.2",
    "frame-title": "4.1.2",
    "aria-allowed-attr": "4.1.2",
    "aria-required-attr": "4.1.2",
    "aria-valid-attr": "4.1.2",
    "aria-valid-attr-value": "4.1.2",
    "aria-hidden-focus": "4.1.2",
    "duplicate-id-aria": "4.1.1",
    "document-title": "2.4.2",
    "html-has-lang": "3.1.1",
    "html-lang-valid": "3.1.1",
    "bypass": "2.4.1",
    "tabindex": "2.4.3",
    "heading-order": "1.3.1",
    "list": "1.3.1",
    "listitem": "1.3.1",
    "td-headers-attr": "1.3.1",
    "th-has-data-cells": "1.3.1",
    "meta-viewport": "1.4.4",
    "video-caption": "1.2.2",
}

_AXE_TAG = re.compile(r"^wcag(\d)(\d)(\d+)$")
_PA11Y_CODE = re.compile(r"(\d+)_(\d+)_(\d+)")


def criteria_for_level(level: WcagLevel) -> frozenset[str]:
    """Return every criterion required for conformance at *level*."""
    return REQUIRED_CRITERIA[level]


def criterion_from_axe_tags(tags: list[str]) -> str | None:
    """Return the first criterion encoded in axe ``wcagNNN`` tags."""
    for tag in tags:
        match = _AXE_TAG.match(tag)
        if match:
            return ".".join(match.groups())
    return None


def criterion_from_pa11y_code(code: str) -> str | None:
    """``WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail`` -> ``1.4.3``."""
    match = _PA11Y_CODE.search(code or "")
    if match is None:
        return None
    return ".".join(match.groups())


def criterion_from_lighthouse_audit(audit_id: str) -> str | None:
    return LIGHTHOUSE_AUDIT_CRITERIA.get(audit_id)


def normalize_criterion(value: str | None) -> str | None:
    """Accept ``"1.4.3"``, ``"wcag143"`` or ``"WCAG 1.4.3"`` forms."""
    if not value:
        return None
    text = str(value).strip().lower()
    axe = _AXE_TAG.match(text)
    if axe:
        return ".".join(axe.groups())
    dotted = re.search(r"(\d+)\.(\d+)\.(\d+)", text)
    if dotted:
        return ".".join(dotted.groups())
    return None
