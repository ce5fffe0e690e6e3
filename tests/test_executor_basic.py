"""
Unit Tests — Executor Basics
============================
Tests for the Process Runner, Command Resolver, Project Detector and the
log excerpt helper.

The process runner is exercised with the running Python interpreter as
the child process, so no JavaScript tooling is needed.
"""
import asyncio
import os
import sys

import pytest

from quality_gate.executor.command_resolver import (
    StageCommand,
    get_supported_stages,
    resolve_stage_command,
)
from quality_gate.executor.process_runner import CommandResult, run_command
from quality_gate.executor.project_detector import detect_app_layout
from quality_gate.utils.log_excerpt import create_log_excerpt


def _py(code):
    return [sys.executable, "-c", code]


# ===========================================================================
# 1. Process Runner
# ===========================================================================
class TestProcessRunner:

    def test_captures_stdout(self, tmp_path):
        result = asyncio.run(run_command(_py("print('hello')"), cwd=str(tmp_path), timeout=30))
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"
        assert result.ok
        assert result.execution_time_seconds >= 0

    def test_non_zero_exit(self, tmp_path):
        code = "import sys; sys.stderr.write('bad things'); sys.exit(3)"
        result = asyncio.run(run_command(_py(code), cwd=str(tmp_path), timeout=30))
        assert result.exit_code == 3
        assert result.stderr == "bad things"
        assert not result.ok
        assert result.error is None

    def test_runs_in_cwd(self, tmp_path):
        result = asyncio.run(run_command(_py("import os; print(os.getcwd())"), cwd=str(tmp_path), timeout=30))
        assert os.path.realpath(result.stdout.strip()) == os.path.realpath(str(tmp_path))

    def test_timeout_kills_process(self, tmp_path):
        result = asyncio.run(run_command(_py("import time; time.sleep(30)"), cwd=str(tmp_path), timeout=0.5))
        assert result.timed_out
        assert result.error == "Timed out after 0.5s"
        assert result.execution_time_seconds < 10
        assert not result.ok

    def test_cancellation_terminates_child(self, tmp_path):
        code = (
            "import os, time\n"
            "with open('pid.tmp', 'w') as f: f.write(str(os.getpid()))\n"
            "os.replace('pid.tmp', 'pid')\n"
            "time.sleep(30)\n"
        )
        pid_file = tmp_path / "pid"

        async def cancel_mid_run():
            task = asyncio.create_task(run_command(_py(code), cwd=str(tmp_path), timeout=60))
            for _ in range(200):
                if pid_file.exists():
                    break
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return int(pid_file.read_text())

        pid = asyncio.run(cancel_mid_run())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    def test_missing_binary(self, tmp_path):
        result = asyncio.run(run_command(["qg-no-such-tool-xyz", "--version"], cwd=str(tmp_path), timeout=5))
        assert result.not_found
        assert result.error == "qg-no-such-tool-xyz not found"
        assert result.exit_code == -1

    def test_combined_output(self):
        assert CommandResult(command=[], stdout="a", stderr="b").output == "a\nb"
        assert CommandResult(command=[], stderr="b").output == "b"


# ===========================================================================
# 2. Command Resolver
# ===========================================================================
class TestCommandResolver:

    def test_typecheck_command(self):
        cmd = resolve_stage_command("typecheck")
        assert isinstance(cmd, StageCommand)
        assert cmd.argv[1:] == ("tsc", "--noEmit", "--skipLibCheck", "--pretty", "false")
        assert cmd.tool == "tsc"

    def test_lint_uses_json_formatter(self):
        cmd = resolve_stage_command("lint")
        assert cmd.argv[-2:] == ("--format", "json")

    def test_e2e_uses_flow_runner(self):
        cmd = resolve_stage_command("e2e")
        assert cmd.argv[1:] == ("test", ".maestro/", "--format", "junit")
        assert cmd.tool == "maestro"

    def test_unknown_stage(self):
        assert resolve_stage_command("deploy") is None

    def test_supported_stages(self):
        assert get_supported_stages() == ["e2e", "lint", "prebuild", "typecheck", "unit-tests"]


# ===========================================================================
# 3. Project Detector
# ===========================================================================
class TestProjectDetector:

    def _touch(self, root, rel):
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")

    def test_expo_router_layout(self, tmp_path):
        for rel in ("app/_layout.tsx", "app/(tabs)/_layout.tsx", "app.json"):
            self._touch(tmp_path, rel)
        layout = detect_app_layout(str(tmp_path))
        assert layout.entry_file == "app/_layout.tsx"
        assert layout.app_config == "app.json"
        assert layout.uses_file_router
        assert [(n.path, n.navigator_type, n.file_based) for n in layout.navigators] == [
            ("app/_layout.tsx", "stack", True),
            ("app/(tabs)/_layout.tsx", "tab", True),
        ]

    def test_react_navigation_layout(self, tmp_path):
        for rel in ("App.tsx", "app.config.ts", "src/navigation/AppNavigator.tsx"):
            self._touch(tmp_path, rel)
        layout = detect_app_layout(str(tmp_path))
        assert layout.entry_file == "App.tsx"
        assert layout.app_config == "app.config.ts"
        assert not layout.uses_file_router
        [nav] = layout.navigators
        assert not nav.file_based

    def test_missing_directory(self, tmp_path):
        layout = detect_app_layout(str(tmp_path / "nope"))
        assert layout.entry_file is None
        assert layout.navigators == []


# ===========================================================================
# 4. Log excerpt
# ===========================================================================
class TestLogExcerpt:

    def test_short_log_unchanged(self):
        assert create_log_excerpt("short", limit=100) == "short"

    def test_long_log_keeps_head_and_tail(self):
        log = "HEAD" + "x" * 5000 + "TAIL"
        excerpt = create_log_excerpt(log, limit=200)
        assert len(excerpt) <= 200
        assert excerpt.startswith("HEAD")
        assert excerpt.endswith("TAIL")
        assert "chars omitted" in excerpt
