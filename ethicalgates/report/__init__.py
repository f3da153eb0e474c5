"""Terminal rendering of audit results."""

from ethicalgates.report.renderer import AuditRenderer

__all__ = ["AuditRenderer"]
