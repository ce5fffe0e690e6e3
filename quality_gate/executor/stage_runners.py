"""
Stage Runners
=============
One Stage Runner per external check. Each invokes exactly one tool through
the Process Runner and turns its output into a StageResult.

BOUNDARY RULES (CRITICAL):
    - A stage ONLY observes; it never edits the project.
    - A stage never raises for tool problems. Missing binaries, timeouts
      and crashes become error diagnostics with a synthetic rule
      (TOOL_NOT_FOUND, STAGE_TIMEOUT, INTERNAL_ERROR).
    - A non-zero exit without any parsed error still fails the stage
      (NON_ZERO_EXIT), so ``passed`` always agrees with the exit status.
    - Cancellation propagates; the Process Runner kills the child.

DEGRADE GRACEFULLY:
    The end-to-end stage substitutes a structural check of the flow files
    when the flow runner is not installed, and then passes with warnings.
"""
import asyncio
import logging
import os
import shutil
import time
from typing import Optional

import yaml

from quality_gate.core.constants import (
    STAGE_TYPECHECK,
    STAGE_LINT,
    STAGE_PREBUILD,
    STAGE_UNIT_TESTS,
    STAGE_E2E,
    RULE_TOOL_NOT_FOUND,
    RULE_STAGE_TIMEOUT,
    RULE_NON_ZERO_EXIT,
    RULE_INTERNAL_ERROR,
)
from quality_gate.executor.command_resolver import StageCommand, resolve_stage_command
from quality_gate.executor.process_runner import CommandResult, run_command
from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.models.validation_result import StageResult
from quality_gate.parser.diagnostic_parser import (
    parse_eslint_output,
    parse_generic_errors,
    parse_jest_output,
    parse_maestro_output,
    parse_tsc_output,
)
from quality_gate.utils.log_excerpt import create_log_excerpt

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base runner
# ---------------------------------------------------------------------------
class StageRunner:
    """
    Runs one tool and reports a StageResult.

    Subclasses set ``name`` and override ``parse``.
    """
    name: str = ""

    def __init__(self, command: Optional[StageCommand] = None) -> None:
        resolved = command or resolve_stage_command(self.name)
        if resolved is None:
            raise ValueError(f"No command mapping for stage '{self.name}'")
        self.command = resolved

    def parse(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        return parse_generic_errors(result.output, self.command.tool)

    def _synthetic(self, message: str, rule: str) -> RawDiagnostic:
        return RawDiagnostic(message=message, rule=rule, source=self.command.tool)

    def diagnose(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        """Turn a CommandResult into diagnostics, synthesizing infrastructure errors."""
        tool = self.command.tool
        if result.not_found:
            return [self._synthetic(
                f"{self.command.argv[0]} not found – cannot run {tool} for stage '{self.name}'",
                RULE_TOOL_NOT_FOUND,
            )]
        if result.timed_out:
            return [self._synthetic(
                f"{tool} timed out after {result.execution_time_seconds:.1f}s",
                RULE_STAGE_TIMEOUT,
            )]
        if result.error:
            return [self._synthetic(result.error, RULE_INTERNAL_ERROR)]

        diagnostics = self.parse(result, project_path)
        if result.exit_code != 0 and not any(d.severity == "error" for d in diagnostics):
            first_line = next((l.strip() for l in result.output.splitlines() if l.strip()), "")
            detail = f": {first_line[:200]}" if first_line else ""
            diagnostics.append(self._synthetic(
                f"{tool} exited with code {result.exit_code}{detail}",
                RULE_NON_ZERO_EXIT,
            ))
        return diagnostics

    async def run(self, project_path: str, timeout: Optional[float] = None) -> StageResult:
        """
        Execute the stage against ``project_path``.

        Parameters
        ----------
        project_path : str
            Generated project root (tool working directory).
        timeout : float | None
            Overrides the stage's default timeout.

        Returns
        -------
        StageResult
            Never raises except on cancellation.
        """
        start = time.monotonic()
        limit = timeout if timeout is not None else self.command.timeout_seconds
        output: Optional[str] = None
        try:
            result = await run_command(list(self.command.argv), cwd=project_path, timeout=limit)
            diagnostics = self.diagnose(result, project_path)
            output = result.output
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Stage '%s' crashed", self.name)
            diagnostics = [self._synthetic(f"Stage crashed: {e}", RULE_INTERNAL_ERROR)]

        stage = StageResult(
            name=self.name,
            duration_seconds=round(time.monotonic() - start, 3),
            errors=diagnostics,
            output=output,
        )
        logger.info(
            "Stage %s %s in %.3fs (%d errors, %d warnings)",
            self.name, "passed" if stage.passed else "failed",
            stage.duration_seconds, len(stage.errors), len(stage.warnings),
        )
        return stage


# ---------------------------------------------------------------------------
# Concrete stages
# ---------------------------------------------------------------------------
class TypeCheckStage(StageRunner):
    name = STAGE_TYPECHECK

    def parse(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        return parse_tsc_output(result.output, project_path)


class LintStage(StageRunner):
    name = STAGE_LINT

    def parse(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        # stdout only: ESLint prints deprecation notices on stderr
        return parse_eslint_output(result.stdout or result.output, project_path)


class PrebuildStage(StageRunner):
    name = STAGE_PREBUILD


class UnitTestStage(StageRunner):
    name = STAGE_UNIT_TESTS

    def parse(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        return parse_jest_output(result.output, project_path)


# ---------------------------------------------------------------------------
# End-to-end flows
# ---------------------------------------------------------------------------
FLOWS_DIR = ".maestro"

RECOGNIZED_ACTIONS = frozenset({
    "tapOn", "doubleTapOn", "longPressOn", "assertVisible", "assertNotVisible",
    "inputText", "eraseText", "scroll", "scrollUntilVisible", "swipe",
    "waitForAnimationToEnd", "extendedWaitUntil", "pressKey", "back",
    "openLink", "takeScreenshot", "assertTrue", "runFlow",
})


def _command_name(command) -> Optional[str]:
    if isinstance(command, str):
        return command
    if isinstance(command, dict) and command:
        return next(iter(command))
    return None


def list_flow_files(flows_dir: str) -> list[str]:
    """Top-level ``*.yaml`` / ``*.yml`` flows, ``config.yaml`` excluded."""
    if not os.path.isdir(flows_dir):
        return []
    return sorted(
        os.path.join(flows_dir, name)
        for name in os.listdir(flows_dir)
        if name.endswith((".yaml", ".yml")) and name not in ("config.yaml", "config.yml")
    )


def validate_flow_structure(project_path: str) -> list[RawDiagnostic]:
    """
    Structural checks of the flow files, reported as warnings.

    Each flow must name a launch target (``appId`` in its header document
    or a ``launchApp`` command) and contain at least one recognized action.
    """
    flows_dir = os.path.join(project_path, FLOWS_DIR)
    flows = list_flow_files(flows_dir)
    if not flows:
        return [RawDiagnostic(
            file=FLOWS_DIR,
            message="No end-to-end flow files found",
            severity="warning",
            rule="no-flows",
            source="maestro",
        )]

    warnings: list[RawDiagnostic] = []
    for path in flows:
        rel = f"{FLOWS_DIR}/{os.path.basename(path)}"
        try:
            with open(path, "r", encoding="utf-8") as f:
                documents = [d for d in yaml.safe_load_all(f) if d is not None]
        except (OSError, yaml.YAMLError) as e:
            warnings.append(RawDiagnostic(
                file=rel, message=f"Unreadable flow: {e}", severity="warning",
                rule="invalid-flow", source="maestro",
            ))
            continue

        header = next((d for d in documents if isinstance(d, dict)), {})
        commands = [c for d in documents if isinstance(d, list) for c in d]
        names = [n for n in (_command_name(c) for c in commands) if n]

        if "appId" not in header and "launchApp" not in names:
            warnings.append(RawDiagnostic(
                file=rel, message="Flow does not name a launch target (appId or launchApp)",
                severity="warning", rule="missing-launch-target", source="maestro",
            ))
        if not any(n in RECOGNIZED_ACTIONS for n in names):
            warnings.append(RawDiagnostic(
                file=rel, message="Flow contains no recognized action",
                severity="warning", rule="no-actions", source="maestro",
            ))
    return warnings


class E2EFlowStage(StageRunner):
    name = STAGE_E2E

    def parse(self, result: CommandResult, project_path: str) -> list[RawDiagnostic]:
        return parse_maestro_output(result.output)

    async def run(self, project_path: str, timeout: Optional[float] = None) -> StageResult:
        binary = self.command.argv[0]
        if not os.path.isdir(os.path.join(project_path, FLOWS_DIR)) \
                or shutil.which(binary) is None:
            start = time.monotonic()
            warnings = validate_flow_structure(project_path)
            if shutil.which(binary) is None:
                warnings.insert(0, RawDiagnostic(
                    message=f"{binary} not installed – structural flow validation only",
                    severity="warning",
                    rule=RULE_TOOL_NOT_FOUND,
                    source="maestro",
                ))
            logger.warning("E2E stage degraded to structural validation (%d warnings)", len(warnings))
            return StageResult(
                name=self.name,
                duration_seconds=round(time.monotonic() - start, 3),
                warnings=warnings,
                output=create_log_excerpt("\n".join(w.message for w in warnings)),
            )
        return await super().run(project_path, timeout)


DEFAULT_STAGES: tuple[type[StageRunner], ...] = (
    TypeCheckStage,
    LintStage,
    PrebuildStage,
    UnitTestStage,
    E2EFlowStage,
)


def build_default_stages() -> dict[str, StageRunner]:
    return {cls.name: cls() for cls in DEFAULT_STAGES}
