"""
Command Resolver
================
Maps a stage name to the external tool invocation that implements it.

Resolver never executes commands, it only returns argv sequences.
Commands are passed to the Process Runner by the Stage Runners.

Deterministic: same stage → same command, always. Binaries come from
configuration (NPX_BINARY, MAESTRO_BINARY) so tests and CI images can
point at wrappers.
"""
from dataclasses import dataclass
from typing import Optional

from quality_gate.core.config import (
    NPX_BINARY,
    MAESTRO_BINARY,
    TYPECHECK_TIMEOUT,
    LINT_TIMEOUT,
    PREBUILD_TIMEOUT,
    UNIT_TEST_TIMEOUT,
    E2E_TIMEOUT,
)
from quality_gate.core.constants import (
    STAGE_TYPECHECK,
    STAGE_LINT,
    STAGE_PREBUILD,
    STAGE_UNIT_TESTS,
    STAGE_E2E,
)


@dataclass(frozen=True)
class StageCommand:
    """
    Immutable description of one stage's tool call.

    Fields
    ------
    stage : str
        Stage name (e.g. "typecheck").
    argv : tuple[str, ...]
        Program and arguments, executed without a shell.
    timeout_seconds : int
        Default timeout for the stage.
    tool : str
        Short tool name used as diagnostic ``source``.
    """
    stage: str
    argv: tuple[str, ...]
    timeout_seconds: int
    tool: str


# ---------------------------------------------------------------------------
# Command mapping: stage → StageCommand
# ---------------------------------------------------------------------------
_COMMAND_MAP: dict[str, StageCommand] = {
    STAGE_TYPECHECK: StageCommand(
        stage=STAGE_TYPECHECK,
        argv=(NPX_BINARY, "tsc", "--noEmit", "--skipLibCheck", "--pretty", "false"),
        timeout_seconds=TYPECHECK_TIMEOUT,
        tool="tsc",
    ),
    STAGE_LINT: StageCommand(
        stage=STAGE_LINT,
        argv=(NPX_BINARY, "eslint", ".", "--ext", ".ts,.tsx", "--format", "json"),
        timeout_seconds=LINT_TIMEOUT,
        tool="eslint",
    ),
    STAGE_PREBUILD: StageCommand(
        stage=STAGE_PREBUILD,
        argv=(NPX_BINARY, "expo", "prebuild", "--clean", "--no-install"),
        timeout_seconds=PREBUILD_TIMEOUT,
        tool="expo",
    ),
    STAGE_UNIT_TESTS: StageCommand(
        stage=STAGE_UNIT_TESTS,
        argv=(NPX_BINARY, "jest", "--ci", "--json", "--passWithNoTests"),
        timeout_seconds=UNIT_TEST_TIMEOUT,
        tool="jest",
    ),
    STAGE_E2E: StageCommand(
        stage=STAGE_E2E,
        argv=(MAESTRO_BINARY, "test", ".maestro/", "--format", "junit"),
        timeout_seconds=E2E_TIMEOUT,
        tool="maestro",
    ),
}


def resolve_stage_command(stage: str) -> Optional[StageCommand]:
    """
    Look up the tool invocation for ``stage``.

    Parameters
    ----------
    stage : str
        One of the STAGE_* constants.

    Returns
    -------
    StageCommand | None
        None when the stage has no command mapping.
    """
    return _COMMAND_MAP.get(stage)


def get_supported_stages() -> list[str]:
    """Return all stages that have command mappings."""
    return sorted(_COMMAND_MAP.keys())
