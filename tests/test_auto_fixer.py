"""
Unit Tests — Auto-Fix Orchestrator
==================================
Tests for the confidence gate, the fix budget, dry runs, duplicate
suppression and fault handling.

Async entry points are driven with asyncio.run; fix handlers are patched
where a specific outcome must be forced.
"""
import asyncio
from unittest.mock import patch

from quality_gate.agents.auto_fixer import AutoFixOrchestrator, DRY_RUN_PREFIX, auto_fix_errors
from quality_gate.fixes.registry import FixHandler
from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.models.fix import ApplyResult, ImportFix
from quality_gate.utils import skip_reasons


def _missing(symbol="View", file="src/App.tsx", line=1, message=None):
    return RawDiagnostic(
        file=file, line=line, column=1,
        message=message or f"Cannot find name '{symbol}'.", source="tsc",
    )


def _project(tmp_path, files=("src/App.tsx",)):
    for rel in files:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("export const screen = 1;\n")
    return str(tmp_path)


def _run(diagnostics, root, **kwargs):
    return asyncio.run(AutoFixOrchestrator().auto_fix(diagnostics, root, **kwargs))


def _fixed_handler(apply_result=None, apply_error=None, generate_error=None):
    fix = ImportFix(file="src/App.tsx", symbol="View", module="react-native",
                    import_statement="import { View } from 'react-native';", confidence=0.99)

    def generate(parsed, project_root, symbol_index=None):
        if generate_error:
            raise generate_error
        return fix

    def apply(f, project_root):
        if apply_error:
            raise apply_error
        return apply_result

    return FixHandler(generate, apply)


# ===========================================================================
# 1. Happy path
# ===========================================================================
class TestApplied:

    def test_framework_import_written(self, tmp_path):
        root = _project(tmp_path)
        report = _run([_missing()], root)
        assert report.success
        assert report.fix_count == 1
        assert report.applied[0].description == "Added import: import { View } from 'react-native';"
        assert "import { View } from 'react-native';" in (tmp_path / "src/App.tsx").read_text()

    def test_wrapper(self, tmp_path):
        root = _project(tmp_path)
        report = asyncio.run(auto_fix_errors([_missing()], root))
        assert report.fix_count == 1


# ===========================================================================
# 2. Gate, budget, dry run
# ===========================================================================
class TestGating:

    def test_budget_stops_after_max_fixes(self, tmp_path):
        files = [f"src/screen{i}.tsx" for i in range(100)]
        root = _project(tmp_path, files)
        report = _run([_missing(file=f) for f in files], root, max_fixes=50)
        assert len(report.applied) == 50
        assert report.skipped == []
        assert report.failed == []
        untouched = (tmp_path / "src/screen99.tsx").read_text()
        assert "react-native" not in untouched

    def test_confidence_above_one_skips_everything(self, tmp_path):
        root = _project(tmp_path)
        report = _run([_missing(), _missing("Text", line=2)], root, min_confidence=1.01)
        assert report.applied == []
        assert len(report.skipped) == 2
        assert report.skipped[0].reason == "Confidence too low: 99.0% < 101.0%"
        assert report.success

    def test_project_scan_below_default_gate(self, tmp_path):
        root = _project(tmp_path)
        util = tmp_path / "src/utils/currency.ts"
        util.parent.mkdir(parents=True)
        util.write_text("export function formatCurrency(v: number) { return String(v); }\n")
        report = _run([_missing("formatCurrency", file="src/screen.tsx")], root)
        [skipped] = report.skipped
        assert skipped.pattern == "missing-import"
        assert skipped.reason == "Confidence too low: 85.0% < 95.0%"

    def test_dry_run_touches_nothing(self, tmp_path):
        root = _project(tmp_path)
        before = (tmp_path / "src/App.tsx").read_text()
        report = _run([_missing()], root, dry_run=True)
        [applied] = report.applied
        assert applied.dry_run
        assert applied.description.startswith(DRY_RUN_PREFIX + "Added import:")
        assert (tmp_path / "src/App.tsx").read_text() == before


# ===========================================================================
# 3. Skips and duplicates
# ===========================================================================
class TestSkipped:

    def test_unknown_pattern(self, tmp_path):
        root = _project(tmp_path)
        report = _run([RawDiagnostic(file="src/App.tsx", message="Type 'a' is not assignable to type 'b'.")],
                      root)
        [skipped] = report.skipped
        assert skipped.pattern == "unknown"
        assert skipped.reason == skip_reasons.NO_MATCHING_PATTERN

    def test_no_fix_generated(self, tmp_path):
        root = _project(tmp_path)
        report = _run([_missing("Nowhere")], root)
        assert report.skipped[0].reason == skip_reasons.FIX_NOT_GENERATED

    def test_same_defect_from_two_tools(self, tmp_path):
        root = _project(tmp_path)
        report = _run([_missing(), _missing(message="'View' is not defined.")], root)
        assert report.fix_count == 1
        assert report.skipped[0].reason == skip_reasons.DUPLICATE_FIX

    def test_same_fix_proposed_twice(self, tmp_path):
        root = _project(tmp_path)
        report = _run([_missing(line=3), _missing(line=7)], root)
        assert report.fix_count == 1
        assert report.skipped[0].reason == skip_reasons.DUPLICATE_FIX


# ===========================================================================
# 4. Faults
# ===========================================================================
class TestFaults:

    def test_apply_failure_marks_report_unsuccessful(self, tmp_path):
        root = _project(tmp_path)
        handler = _fixed_handler(apply_result=ApplyResult(success=False, error="boom"))
        with patch("quality_gate.agents.auto_fixer.get_handler", return_value=handler):
            report = _run([_missing()], root)
        assert not report.success
        assert report.failed[0].reason == "boom"

    def test_applier_exception_becomes_failure(self, tmp_path):
        root = _project(tmp_path)
        handler = _fixed_handler(apply_error=PermissionError("read-only"))
        with patch("quality_gate.agents.auto_fixer.get_handler", return_value=handler):
            report = _run([_missing()], root)
        assert report.failed[0].reason == "read-only"

    def test_generator_exception_becomes_skip(self, tmp_path):
        root = _project(tmp_path)
        handler = _fixed_handler(generate_error=RuntimeError("kaboom"))
        with patch("quality_gate.agents.auto_fixer.get_handler", return_value=handler):
            report = _run([_missing()], root)
        assert report.success
        assert report.skipped[0].reason == "Could not generate fix: kaboom"

    def test_missing_file_is_failure(self, tmp_path):
        report = _run([_missing(file="src/Gone.tsx")], str(tmp_path))
        assert not report.success
        assert report.failed[0].reason.startswith("File not found")
