"""
Unit Tests — Output Formatter & Result Models
==============================================
Validates exact summary strings and the invariants the result models
enforce on construction.

Every formatter assertion uses exact string equality.
"""
import logging

from quality_gate.core.constants import ARROW
from quality_gate.core.output_formatter import (
    format_auto_fix_report,
    format_tier_result,
    log_auto_fix_report,
    summarize_checks,
)
from quality_gate.models.auto_fix_report import AppliedFix, AutoFixReport, FailedFix, SkippedFix
from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.models.fix import ImportFix, RouteFix, UnusedImportFix
from quality_gate.models.validation_result import StageResult, TierResult
from quality_gate.models.verification import ErrorLocation, VerificationCheck
from quality_gate.utils.fix_fingerprint import generate_fix_fingerprint
from quality_gate.utils.skip_reasons import low_confidence


# ---------------------------------------------------------------------------
# 1. Arrow constant
# ---------------------------------------------------------------------------
class TestArrowConstant:

    def test_arrow_is_unicode_2192(self):
        assert ord(ARROW) == 0x2192


# ---------------------------------------------------------------------------
# 2. Verification summary
# ---------------------------------------------------------------------------
class TestSummarizeChecks:

    def test_all_passed(self):
        checks = [VerificationCheck(name=n, passed=True) for n in ("a", "b", "c")]
        assert summarize_checks(checks, 0.8124) == "All 3 checks passed in 812ms"

    def test_some_failed(self):
        checks = [
            VerificationCheck(name="typescript", passed=False),
            VerificationCheck(name="package-json", passed=True),
            VerificationCheck(name="navigation", passed=False),
        ]
        assert summarize_checks(checks, 1.0) == "2/3 checks failed: typescript, navigation"


# ---------------------------------------------------------------------------
# 3. Auto-fix report
# ---------------------------------------------------------------------------
class TestAutoFixReport:

    def _report(self):
        return AutoFixReport(
            applied=[AppliedFix(pattern="missing-import", file="src/App.tsx",
                                description="Added import: import { View } from 'react-native';")],
            skipped=[SkippedFix(pattern="unknown", file="src/x.ts", reason="No matching fix pattern")],
            failed=[FailedFix(pattern="unused-import", file="src/y.ts", reason="Invalid line number")],
        )

    def test_rendering(self):
        assert format_auto_fix_report(self._report()) == (
            "Auto-fix: 1 applied, 1 skipped, 1 failed\n"
            "  ✓ [missing-import] src/App.tsx → Added import: import { View } from 'react-native';\n"
            "  - [unknown] src/x.ts → No matching fix pattern\n"
            "  ✗ [unused-import] src/y.ts → Invalid line number"
        )

    def test_success_tracks_failures(self):
        report = self._report()
        assert not report.success
        assert report.fix_count == 1
        assert AutoFixReport().success
        assert report.model_dump()["success"] is False

    def test_log_levels(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="quality_gate.core.output_formatter"):
            log_auto_fix_report(self._report())
        levels = [r.levelname for r in caplog.records]
        assert levels == ["INFO", "DEBUG", "WARNING"]

    def test_low_confidence_wording(self):
        assert low_confidence(0.85, 0.95) == "Confidence too low: 85.0% < 95.0%"


# ---------------------------------------------------------------------------
# 4. Tier summary
# ---------------------------------------------------------------------------
class TestTierResult:

    def test_escalation_label(self):
        stage = StageResult(name="typecheck", errors=[RawDiagnostic(message="x")])
        result = TierResult.from_stages("tier2", "tier1", {"typecheck": stage}, 4.21)
        assert format_tier_result(result) == "tier2 (executed tier1): FAILED – 1 errors, 0 warnings in 4.2s"

    def test_passed_label(self):
        result = TierResult.from_stages("tier1", "tier1", {"lint": StageResult(name="lint")}, 0.5)
        assert format_tier_result(result) == "tier1: PASSED – 0 errors, 0 warnings in 0.5s"


# ---------------------------------------------------------------------------
# 5. Model invariants
# ---------------------------------------------------------------------------
class TestModels:

    def test_stage_result_moves_warnings(self):
        warning = RawDiagnostic(message="style", severity="warning")
        stage = StageResult(name="lint", errors=[warning])
        assert stage.passed
        assert stage.errors == []
        assert stage.warnings == [warning]

    def test_stage_output_truncated(self):
        stage = StageResult(name="jest", output="x" * 10_000)
        assert len(stage.output) <= 2000

    def test_verification_check_caps(self):
        check = VerificationCheck(
            name="typescript", passed=False, details="d" * 5000,
            errors=[ErrorLocation(message=str(i)) for i in range(25)],
        )
        assert len(check.errors) == 10
        assert len(check.details) == 2000

    def test_diagnostic_location(self):
        assert RawDiagnostic(file="a.ts", line=3, column=4, message="m").location() == "a.ts:3:4"
        assert RawDiagnostic(message="m").location() == "<unknown>"

    def test_fix_descriptions(self):
        route = RouteFix(file="src/navigation/AppNavigator.tsx", screen_name="Cart",
                         screen_element='<Stack.Screen name="Cart" component={CartScreen} />',
                         confidence=0.85)
        unused = UnusedImportFix(file="a.ts", line=1, import_name="Text",
                                 action="remove-specifier", confidence=0.95)
        assert route.describe() == "Registered screen 'Cart' in stack navigator"
        assert route.navigation_file == "src/navigation/AppNavigator.tsx"
        assert unused.describe() == "Removed unused import: Text"

    def test_fingerprint_ignores_confidence(self):
        a = ImportFix(file="a.ts", symbol="View", module="react-native",
                      import_statement="import { View } from 'react-native';", confidence=0.99)
        b = a.model_copy(update={"confidence": 0.5})
        c = a.model_copy(update={"file": "b.ts"})
        assert generate_fix_fingerprint(a) == generate_fix_fingerprint(b)
        assert generate_fix_fingerprint(a) != generate_fix_fingerprint(c)
