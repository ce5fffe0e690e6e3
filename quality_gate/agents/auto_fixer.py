"""
Auto-Fix Orchestrator
=====================
Drives Categorize → Generate → Confidence-gate → Apply across a batch of
diagnostics and reports every outcome.

Core Features:
    - Single pass, input order, bounded by ``max_fixes`` accepted fixes
    - Confidence gate (default 0.95) with the numbers in the skip reason
    - Dry run: fixes are recorded as applied, no file is touched
    - Duplicate suppression: a fix attempted once in an invocation is
      never attempted again in the same invocation
    - Per-file serialization: writes to one path never interleave, even
      across concurrent ``auto_fix`` calls on the same instance
    - Fault tolerance: generator/applier faults become skipped/failed
      entries, never exceptions

Cancellation:
    Cancelling the awaiting task stops scheduling further fixes. An edit
    already handed to its worker thread finishes as a whole-file replace.
"""
import asyncio
import logging
import time
from typing import Optional

from quality_gate.core.config import AUTO_FIX_MIN_CONFIDENCE, AUTO_FIX_MAX_FIXES
from quality_gate.core.constants import PATTERN_UNKNOWN
from quality_gate.core.output_formatter import log_auto_fix_report
from quality_gate.fixes.registry import FixHandler, get_handler
from quality_gate.models.auto_fix_report import AppliedFix, AutoFixReport, FailedFix, SkippedFix
from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.parser.error_categorizer import categorize_error
from quality_gate.services.symbol_index import SymbolIndex
from quality_gate.utils.fix_fingerprint import generate_error_signature, generate_fix_fingerprint
from quality_gate.utils.path_utils import resolve_in_project
from quality_gate.utils import skip_reasons

logger = logging.getLogger(__name__)

DRY_RUN_PREFIX = "[DRY RUN] "


class AutoFixOrchestrator:
    """
    Owns the per-path write locks used while applying fixes.

    Usage:
        fixer = AutoFixOrchestrator()
        report = await fixer.auto_fix(diagnostics, project_root)
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, path: str) -> asyncio.Lock:
        return self._locks.setdefault(path, asyncio.Lock())

    async def _apply(self, handler: FixHandler, fix, project_root: str):
        path = resolve_in_project(project_root, fix.file)
        async with self._lock_for(path):
            return await asyncio.to_thread(handler.apply, fix, project_root)

    async def auto_fix(
        self,
        diagnostics: list[RawDiagnostic],
        project_root: str,
        min_confidence: float = AUTO_FIX_MIN_CONFIDENCE,
        dry_run: bool = False,
        max_fixes: int = AUTO_FIX_MAX_FIXES,
    ) -> AutoFixReport:
        """
        Fix what can be fixed safely in ``diagnostics``.

        Parameters
        ----------
        diagnostics : list[RawDiagnostic]
            Tool diagnostics, processed in order.
        project_root : str
            Generated project root; diagnostic paths are relative to it.
        min_confidence : float
            Fixes below this confidence are skipped.
        dry_run : bool
            Record what would be applied without touching files.
        max_fixes : int
            Stop after this many accepted fixes; the rest is left
            untouched and unreported.

        Returns
        -------
        AutoFixReport
            ``success`` is False iff an application failed.
        """
        report = AutoFixReport()
        symbol_index = SymbolIndex(project_root)
        attempted: set[str] = set()
        start = time.monotonic()

        for diagnostic in diagnostics:
            if report.fix_count >= max_fixes:
                logger.info("Fix budget of %d reached – stopping", max_fixes)
                break

            parsed = categorize_error(diagnostic)
            if parsed is None:
                report.skipped.append(SkippedFix(
                    pattern=PATTERN_UNKNOWN,
                    file=diagnostic.file,
                    reason=skip_reasons.NO_MATCHING_PATTERN,
                ))
                continue

            handler = get_handler(parsed.pattern)
            if handler is None:
                report.skipped.append(SkippedFix(
                    pattern=parsed.pattern, file=parsed.file, reason=skip_reasons.NO_HANDLER,
                ))
                continue

            signature = generate_error_signature(parsed)
            if signature in attempted:
                report.skipped.append(SkippedFix(
                    pattern=parsed.pattern, file=parsed.file, reason=skip_reasons.DUPLICATE_FIX,
                ))
                continue
            attempted.add(signature)

            try:
                fix = handler.generate(parsed, project_root, symbol_index)
            except Exception as e:
                logger.warning("Fix generation failed for %s in %s: %s",
                               parsed.pattern, parsed.file, e, exc_info=True)
                report.skipped.append(SkippedFix(
                    pattern=parsed.pattern, file=parsed.file, reason=skip_reasons.generator_error(e),
                ))
                continue

            if fix is None:
                report.skipped.append(SkippedFix(
                    pattern=parsed.pattern, file=parsed.file, reason=skip_reasons.FIX_NOT_GENERATED,
                ))
                continue

            fingerprint = generate_fix_fingerprint(fix)
            if fingerprint in attempted:
                report.skipped.append(SkippedFix(
                    pattern=fix.pattern, file=fix.file, reason=skip_reasons.DUPLICATE_FIX,
                ))
                continue
            attempted.add(fingerprint)

            if fix.confidence < min_confidence:
                report.skipped.append(SkippedFix(
                    pattern=fix.pattern,
                    file=fix.file,
                    reason=skip_reasons.low_confidence(fix.confidence, min_confidence),
                ))
                continue

            if dry_run:
                report.applied.append(AppliedFix(
                    pattern=fix.pattern,
                    file=fix.file,
                    description=DRY_RUN_PREFIX + fix.describe(),
                    dry_run=True,
                ))
                continue

            try:
                result = await self._apply(handler, fix, project_root)
            except Exception as e:
                logger.error("Applier crashed for %s in %s: %s",
                             fix.pattern, fix.file, e, exc_info=True)
                report.failed.append(FailedFix(pattern=fix.pattern, file=fix.file, reason=str(e)))
                continue

            if result.success:
                report.applied.append(AppliedFix(
                    pattern=fix.pattern, file=fix.file, description=fix.describe(),
                ))
            else:
                report.failed.append(FailedFix(
                    pattern=fix.pattern, file=fix.file, reason=result.error or "Unknown error",
                ))

        logger.info(
            "Auto-fix finished in %.3fs: %d applied, %d skipped, %d failed%s",
            time.monotonic() - start, len(report.applied), len(report.skipped),
            len(report.failed), " (dry run)" if dry_run else "",
        )
        log_auto_fix_report(report)
        return report


async def auto_fix_errors(
    diagnostics: list[RawDiagnostic],
    project_root: str,
    min_confidence: float = AUTO_FIX_MIN_CONFIDENCE,
    dry_run: bool = False,
    max_fixes: int = AUTO_FIX_MAX_FIXES,
    orchestrator: Optional[AutoFixOrchestrator] = None,
) -> AutoFixReport:
    """Convenience wrapper running one invocation on a (new) orchestrator."""
    fixer = orchestrator or AutoFixOrchestrator()
    return await fixer.auto_fix(
        diagnostics,
        project_root,
        min_confidence=min_confidence,
        dry_run=dry_run,
        max_fixes=max_fixes,
    )
