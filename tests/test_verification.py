"""
Unit Tests — Verification Suite
===============================
Tests for the structural checks, the tool-backed checks and suite
aggregation.

Tool calls are patched at quality_gate.services.verification.run_command.
"""
import asyncio
import json
from unittest.mock import AsyncMock, patch

from quality_gate.executor.process_runner import CommandResult
from quality_gate.services.verification import (
    _run_check,
    check_app_config,
    check_circular_imports,
    check_imports,
    check_navigation,
    check_package_json,
    check_typescript,
    quick_verify,
    verify_generated_app,
)

RUN_COMMAND = "quality_gate.services.verification.run_command"


def _write(root, rel, content=""):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _project(root):
    _write(root, "package.json", json.dumps({
        "name": "shop",
        "dependencies": {"expo": "~51.0.0", "react": "18.2.0", "react-native": "0.74.0"},
    }))
    _write(root, "tsconfig.json", "{}")
    _write(root, "app.json", json.dumps({"expo": {"name": "Shop", "slug": "shop"}}))
    _write(root, "app/_layout.tsx", "export default function Layout() { return null; }\n")
    _write(root, "app/index.tsx", "export default function Home() { return null; }\n")
    return str(root)


def _tools_ok(command, cwd=None, timeout=None, env=None):
    if "madge" in command:
        return CommandResult(command=command, exit_code=0, stdout="[]")
    return CommandResult(command=command, exit_code=0)


def _tools_missing(command, cwd=None, timeout=None, env=None):
    return CommandResult(command=command, not_found=True, error=f"{command[0]} not found")


def _run(coro_fn, project, side_effect=_tools_ok):
    with patch(RUN_COMMAND, AsyncMock(side_effect=side_effect)):
        return asyncio.run(coro_fn(project))


# ===========================================================================
# 1. Suite
# ===========================================================================
class TestSuite:

    def test_complete_project_passes(self, tmp_path):
        result = _run(verify_generated_app, _project(tmp_path))
        assert result.passed
        assert len(result.checks) == 7
        assert result.summary.startswith("All 7 checks passed in")

    def test_missing_root_layout(self, tmp_path):
        project = _project(tmp_path)
        (tmp_path / "app/_layout.tsx").unlink()
        result = _run(verify_generated_app, project)
        assert not result.passed
        failed = [c.name for c in result.failed_checks()]
        assert failed == ["required-files", "navigation"]
        assert result.summary == "2/7 checks failed: required-files, navigation"
        navigation = next(c for c in result.checks if c.name == "navigation")
        assert "app/_layout.tsx" in [e.file for e in navigation.errors]

    def test_quick_runs_three_checks(self, tmp_path):
        result = _run(quick_verify, _project(tmp_path))
        assert [c.name for c in result.checks] == ["required-files", "package-json", "typescript"]

    def test_crashing_check_is_reported(self, tmp_path):
        async def explode(project_path):
            raise RuntimeError("disk on fire")

        check = asyncio.run(_run_check("custom", explode, str(tmp_path)))
        assert not check.passed
        assert check.message == "Check crashed: disk on fire"


# ===========================================================================
# 2. Structural checks
# ===========================================================================
class TestStructuralChecks:

    def test_missing_dependency(self, tmp_path):
        _write(tmp_path, "package.json", json.dumps({"name": "x", "dependencies": {"expo": "1", "react": "1"}}))
        check = asyncio.run(check_package_json(str(tmp_path)))
        assert not check.passed
        assert "Missing required dependency: react-native" in check.message

    def test_invalid_package_json(self, tmp_path):
        _write(tmp_path, "package.json", "{not json")
        check = asyncio.run(check_package_json(str(tmp_path)))
        assert not check.passed
        assert check.message.startswith("package.json is not valid JSON")

    def test_app_config_needs_slug(self, tmp_path):
        _write(tmp_path, "app.json", json.dumps({"expo": {"name": "Shop"}}))
        check = asyncio.run(check_app_config(str(tmp_path)))
        assert not check.passed
        assert check.message == "Missing expo.slug"

    def test_dynamic_app_config(self, tmp_path):
        _write(tmp_path, "app.config.ts", "export default {};\n")
        check = asyncio.run(check_app_config(str(tmp_path)))
        assert check.passed

    def test_route_group_without_layout(self, tmp_path):
        _write(tmp_path, "app/_layout.tsx")
        _write(tmp_path, "app/(tabs)/home.tsx")
        check = asyncio.run(check_navigation(str(tmp_path)))
        assert not check.passed
        assert check.errors[0].file == "app/(tabs)/_layout.tsx"

    def test_layouts_in_any_source_extension(self, tmp_path):
        _write(tmp_path, "app/_layout.js")
        _write(tmp_path, "app/index.js")
        _write(tmp_path, "app/(tabs)/_layout.ts")
        _write(tmp_path, "app/(tabs)/home.jsx")
        check = asyncio.run(check_navigation(str(tmp_path)))
        assert check.passed
        assert check.errors == []

    def test_no_route_directory(self, tmp_path):
        check = asyncio.run(check_navigation(str(tmp_path)))
        assert check.passed


# ===========================================================================
# 3. Tool-backed checks
# ===========================================================================
class TestToolChecks:

    def test_type_errors_capped(self, tmp_path):
        _project(tmp_path)
        out = "".join(f"app/index.tsx({i},1): error TS2304: Cannot find name 'x{i}'.\n" for i in range(1, 13))

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=2, stdout=out)

        check = _run(check_typescript, str(tmp_path), tsc)
        assert not check.passed
        assert check.message == "12 type error(s)"
        assert len(check.errors) == 10
        assert check.errors[0].line == 1

    def test_typescript_unavailable(self, tmp_path):
        _project(tmp_path)
        check = _run(check_typescript, str(tmp_path), _tools_missing)
        assert not check.passed
        assert "could not run" in check.message

    def test_circular_chain(self, tmp_path):
        _project(tmp_path)

        def madge(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=1, stdout=json.dumps([["a.ts", "b.ts"]]))

        check = _run(check_circular_imports, str(tmp_path), madge)
        assert not check.passed
        assert check.errors[0].message == "a.ts -> b.ts"

    def test_circular_soft_pass_without_madge(self, tmp_path):
        _project(tmp_path)
        check = _run(check_circular_imports, str(tmp_path), _tools_missing)
        assert check.passed
        assert check.message == "Could not check (madge may not be installed)"

    def test_import_scan_fallback(self, tmp_path):
        _project(tmp_path)
        _write(tmp_path, "app/cart.tsx", "import { Row } from './components/Row';\n")
        check = _run(check_imports, str(tmp_path), _tools_missing)
        assert not check.passed
        assert check.message == "1 unresolved import(s) (static scan)"
        assert check.errors[0].file == "app/cart.tsx"
        assert check.errors[0].line == 1

    def test_import_trace(self, tmp_path):
        _project(tmp_path)
        trace = (
            "======== Resolving module './Row' from '/proj/app/cart.tsx'. ========\n"
            "======== Module name './Row' was not resolved. ========\n"
        )

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=0, stdout=trace)

        check = _run(check_imports, str(tmp_path), tsc)
        assert not check.passed
        assert check.errors[0].message == "Unresolved: ./Row"

    def test_import_trace_names_the_importer(self, tmp_path):
        project = _project(tmp_path)
        trace = (
            f"======== Resolving module './Row' from '{project}/app/cart.tsx'. ========\n"
            "======== Module name './Row' was not resolved. ========\n"
        )

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=0, stdout=trace)

        check = _run(check_imports, project, tsc)
        assert check.message == "1 unresolved import(s) (compiler trace)"
        assert check.errors[0].file == "app/cart.tsx"

    def test_import_trace_ignores_package_lookups(self, tmp_path):
        project = _project(tmp_path)
        trace = (
            f"======== Resolving module 'foo' from '{project}/node_modules/lib/index.d.ts'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
        )

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=0, stdout=trace)

        check = _run(check_imports, project, tsc)
        assert check.passed
        assert check.message == "All imports resolve (compiler trace)"

    def test_import_trace_project_miss_after_package_miss(self, tmp_path):
        project = _project(tmp_path)
        trace = (
            f"======== Resolving module 'foo' from '{project}/node_modules/lib/index.d.ts'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
            f"======== Resolving module 'foo' from '{project}/src/App.tsx'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
        )

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=0, stdout=trace)

        check = _run(check_imports, project, tsc)
        assert not check.passed
        assert [(e.file, e.message) for e in check.errors] == [("src/App.tsx", "Unresolved: foo")]

    def test_import_trace_same_module_from_two_files(self, tmp_path):
        project = _project(tmp_path)
        trace = (
            f"======== Resolving module 'foo' from '{project}/src/App.tsx'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
            f"======== Resolving module 'foo' from '{project}/app/index.tsx'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
            f"======== Resolving module 'foo' from '{project}/src/App.tsx'. ========\n"
            "======== Module name 'foo' was not resolved. ========\n"
        )

        def tsc(command, cwd=None, timeout=None, env=None):
            return CommandResult(command=command, exit_code=0, stdout=trace)

        check = _run(check_imports, project, tsc)
        assert [e.file for e in check.errors] == ["src/App.tsx", "app/index.tsx"]
