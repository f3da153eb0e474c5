"""ethicalgates: accessibility and carbon quality gate for CI/CD pipelines.

Runs several accessibility auditors and carbon estimators against a set of
targets, normalizes their output into one canonical model and turns it into
a deterministic score, grade and pass/fail decision:

  - Violation normalizer with per-tool severity tables and deduplication
  - WCAG 2.1 A/AA/AAA conformance per target
  - API, transfer-size and infrastructure carbon sources with fallback
  - Weighted composite score, letter grade and quality gate reasons
  - Ranked remediation action items
  - Bounded worker pool with per-call timeouts, retries and an audit deadline
"""

__version__ = "0.1.0"
__description__ = "Accessibility and carbon quality gate for CI/CD pipelines"

from ethicalgates.core.orchestrator import AuditOrchestrator
from ethicalgates.cli.app import app as cli

__all__ = ["AuditOrchestrator", "cli", "__version__"]
