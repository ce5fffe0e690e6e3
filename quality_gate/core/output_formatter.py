"""
Output Formatter
================
THE SINGLE SOURCE OF TRUTH for human-readable gate output strings.

STRICT DETERMINISM CONTRACT:
  - This module NEVER runs tools.
  - This module NEVER reads environment variables.
  - Given the same inputs, it ALWAYS returns the exact same output string.

Strings produced:
  Verification summary  "All 7 checks passed in 812ms"
                        "2/7 checks failed: typescript, navigation"
  Auto-fix report       one line per applied / skipped / failed entry
  Tier summary          "tier2 (executed tier1): FAILED – 3 errors, 1 warnings in 4.2s"
"""
import logging

from quality_gate.core.constants import ARROW
from quality_gate.models.auto_fix_report import AutoFixReport
from quality_gate.models.validation_result import TierResult
from quality_gate.models.verification import VerificationCheck

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------
def summarize_checks(checks: list[VerificationCheck], duration_seconds: float) -> str:
    failed = [c.name for c in checks if not c.passed]
    if not failed:
        return f"All {len(checks)} checks passed in {round(duration_seconds * 1000)}ms"
    return f"{len(failed)}/{len(checks)} checks failed: {', '.join(failed)}"


# ---------------------------------------------------------------------------
# Auto-fix
# ---------------------------------------------------------------------------
def format_auto_fix_report(report: AutoFixReport) -> str:
    """
    Render an AutoFixReport as indented text.

    Format::

        Auto-fix: 2 applied, 1 skipped, 0 failed
          ✓ [missing-import] src/App.tsx → Added import: import { View } from 'react-native';
          - [unknown] src/x.ts → No matching fix pattern
          ✗ [unused-import] src/y.ts → File not found: ...
    """
    lines = [
        f"Auto-fix: {len(report.applied)} applied, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    ]
    for entry in report.applied:
        lines.append(f"  ✓ [{entry.pattern}] {entry.file} {ARROW} {entry.description}")
    for entry in report.skipped:
        lines.append(f"  - [{entry.pattern}] {entry.file} {ARROW} {entry.reason}")
    for entry in report.failed:
        lines.append(f"  ✗ [{entry.pattern}] {entry.file} {ARROW} {entry.reason}")
    return "\n".join(lines)


def log_auto_fix_report(report: AutoFixReport) -> None:
    """Applied fixes at INFO, skips at DEBUG, failures at WARNING."""
    for entry in report.applied:
        logger.info("[%s] %s: %s", entry.pattern, entry.file, entry.description)
    for entry in report.skipped:
        logger.debug("[%s] %s skipped: %s", entry.pattern, entry.file, entry.reason)
    for entry in report.failed:
        logger.warning("[%s] %s failed: %s", entry.pattern, entry.file, entry.reason)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------
def format_tier_result(result: TierResult) -> str:
    label = result.tier
    if result.executed_tier != result.tier:
        label = f"{result.tier} (executed {result.executed_tier})"
    verdict = "PASSED" if result.passed else "FAILED"
    return (
        f"{label}: {verdict} – {len(result.errors)} errors, "
        f"{len(result.warnings)} warnings in {result.duration_seconds:.1f}s"
    )
