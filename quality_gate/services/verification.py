"""
Verification Suite
==================
Independent, non-mutating battery of structural and compile checks; the
last gate before a generated app is handed to packaging.

Checks:
    required-files    package.json, tsconfig.json, app config, entry layout
    package-json      valid JSON, name, mandatory runtime dependencies
    app-config        expo.name + expo.slug (dynamic configs pass with a note)
    typescript        tsc --noEmit, up to 10 error locations
    circular-imports  madge --circular (soft pass when unavailable)
    navigation        file-based route tree is well-formed
    imports           unresolved modules from tsc --traceResolution, with a
                      static relative-import scan when tsc cannot run

Contract:
    - Checks run concurrently; none of them writes to the project.
    - Every check runs even when others fail.
    - A check that crashes becomes a failed check carrying the error.
    - passed = AND over all checks.
"""
import asyncio
import json
import logging
import os
import re
import time
from typing import Awaitable, Callable

from quality_gate.core.config import (
    NPX_BINARY,
    REQUIRED_DEPENDENCIES,
    VERIFY_TYPESCRIPT_TIMEOUT,
    VERIFY_CIRCULAR_TIMEOUT,
    VERIFY_IMPORTS_TIMEOUT,
)
from quality_gate.core.output_formatter import summarize_checks
from quality_gate.executor.process_runner import run_command
from quality_gate.executor.project_detector import (
    APP_CONFIG_FILES,
    ENTRY_FILES,
    ROUTE_DIRS,
)
from quality_gate.models.verification import ErrorLocation, VerificationCheck, VerificationResult
from quality_gate.parser.diagnostic_parser import normalize_path, parse_tsc_output
from quality_gate.utils.log_excerpt import create_log_excerpt
from quality_gate.utils.path_utils import SOURCE_EXTENSIONS, iter_source_files

logger = logging.getLogger(__name__)

CheckFn = Callable[[str], Awaitable[VerificationCheck]]


# ---------------------------------------------------------------------------
# Structural checks
# ---------------------------------------------------------------------------
async def check_required_files(project_path: str) -> VerificationCheck:
    missing: list[str] = []
    for required in ("package.json", "tsconfig.json"):
        if not os.path.isfile(os.path.join(project_path, required)):
            missing.append(required)
    if not any(os.path.isfile(os.path.join(project_path, f)) for f in APP_CONFIG_FILES):
        missing.append(" | ".join(APP_CONFIG_FILES))
    if not any(os.path.isfile(os.path.join(project_path, f)) for f in ENTRY_FILES):
        missing.append(" | ".join(ENTRY_FILES))

    if missing:
        return VerificationCheck(
            name="required-files",
            passed=False,
            message=f"Missing required files: {', '.join(missing)}",
            errors=[ErrorLocation(file=m, message="Required file missing") for m in missing],
        )
    return VerificationCheck(name="required-files", passed=True, message="All required files present")


async def check_package_json(project_path: str) -> VerificationCheck:
    path = os.path.join(project_path, "package.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            package = json.load(f)
    except FileNotFoundError:
        return VerificationCheck(name="package-json", passed=False, message="package.json not found")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return VerificationCheck(
            name="package-json", passed=False, message=f"package.json is not valid JSON: {e}",
            errors=[ErrorLocation(file="package.json", message=str(e))],
        )

    if not isinstance(package, dict):
        return VerificationCheck(name="package-json", passed=False, message="package.json must be an object")

    problems: list[str] = []
    if not package.get("name"):
        problems.append("Missing 'name' field")
    dependencies = package.get("dependencies") or {}
    for dep in REQUIRED_DEPENDENCIES:
        if dep not in dependencies:
            problems.append(f"Missing required dependency: {dep}")

    if problems:
        return VerificationCheck(
            name="package-json", passed=False, message="; ".join(problems),
            errors=[ErrorLocation(file="package.json", message=p) for p in problems],
        )
    return VerificationCheck(name="package-json", passed=True, message="package.json is valid")


async def check_app_config(project_path: str) -> VerificationCheck:
    app_json = os.path.join(project_path, "app.json")
    if not os.path.isfile(app_json):
        for dynamic in ("app.config.js", "app.config.ts"):
            if os.path.isfile(os.path.join(project_path, dynamic)):
                return VerificationCheck(
                    name="app-config", passed=True,
                    message=f"Using {dynamic} (dynamic config, not validated)",
                )
        return VerificationCheck(name="app-config", passed=False, message="No app config found")

    try:
        with open(app_json, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return VerificationCheck(
            name="app-config", passed=False, message=f"app.json is not valid JSON: {e}",
            errors=[ErrorLocation(file="app.json", message=str(e))],
        )

    expo = config.get("expo") if isinstance(config, dict) else None
    problems: list[str] = []
    if not isinstance(expo, dict):
        problems.append("Missing 'expo' section")
    else:
        if not expo.get("name"):
            problems.append("Missing expo.name")
        if not expo.get("slug"):
            problems.append("Missing expo.slug")

    if problems:
        return VerificationCheck(
            name="app-config", passed=False, message="; ".join(problems),
            errors=[ErrorLocation(file="app.json", message=p) for p in problems],
        )
    return VerificationCheck(name="app-config", passed=True, message="app.json is valid")


def _has_layout(names) -> bool:
    return any("_layout" + ext in names for ext in SOURCE_EXTENSIONS)


def _is_page(name: str) -> bool:
    return name.endswith(SOURCE_EXTENSIONS) and not name.startswith("_") \
        and not name.endswith(".d.ts")


async def check_navigation(project_path: str) -> VerificationCheck:
    route_dir = next(
        (d for d in ROUTE_DIRS if os.path.isdir(os.path.join(project_path, d))), None,
    )
    if route_dir is None:
        return VerificationCheck(
            name="navigation", passed=True,
            message="No file-based route directory (app/) – skipped",
        )

    root = os.path.join(project_path, route_dir)
    errors: list[ErrorLocation] = []
    if not _has_layout(os.listdir(root)):
        errors.append(ErrorLocation(file=f"{route_dir}/_layout.tsx", message="Missing root layout"))

    has_page = False
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(d for d in dirs if d != "node_modules" and not d.startswith("."))
        rel = normalize_path(os.path.relpath(current, project_path))
        pages = [f for f in files if _is_page(f)]
        has_page = has_page or bool(pages)
        if current == root:
            continue
        name = os.path.basename(current)
        if name.startswith("(") and name.endswith(")") and not _has_layout(files):
            errors.append(ErrorLocation(file=f"{rel}/_layout.tsx", message=f"Route group {name} has no layout"))
        if not pages and not dirs:
            errors.append(ErrorLocation(file=rel, message="Route directory contains no pages"))

    if not has_page:
        errors.append(ErrorLocation(file=route_dir, message="No page files found"))

    if errors:
        return VerificationCheck(
            name="navigation", passed=False,
            message=f"{len(errors)} navigation problem(s)", errors=errors,
        )
    return VerificationCheck(name="navigation", passed=True, message="Route tree is well-formed")


# ---------------------------------------------------------------------------
# Tool-backed checks
# ---------------------------------------------------------------------------
async def check_typescript(project_path: str) -> VerificationCheck:
    if not os.path.isfile(os.path.join(project_path, "tsconfig.json")):
        return VerificationCheck(name="typescript", passed=True, message="No tsconfig.json – skipped")

    result = await run_command(
        [NPX_BINARY, "tsc", "--noEmit", "--skipLibCheck", "--pretty", "false"],
        cwd=project_path,
        timeout=VERIFY_TYPESCRIPT_TIMEOUT,
    )
    if result.not_found or result.timed_out or result.error:
        return VerificationCheck(
            name="typescript", passed=False, message=f"TypeScript check could not run: {result.error}",
        )

    diagnostics = [d for d in parse_tsc_output(result.output, project_path) if d.severity == "error"]
    if result.exit_code == 0 and not diagnostics:
        return VerificationCheck(name="typescript", passed=True, message="No type errors")

    return VerificationCheck(
        name="typescript",
        passed=False,
        message=f"{len(diagnostics)} type error(s)" if diagnostics else f"tsc exited with code {result.exit_code}",
        details=create_log_excerpt(result.output),
        errors=[ErrorLocation(file=d.file or None, line=d.line, message=d.message) for d in diagnostics],
    )


_CYCLE_TEXT = re.compile(r"(\S+\.[jt]sx?)\s*(?:->|>)\s*(\S+\.[jt]sx?)")


async def check_circular_imports(project_path: str) -> VerificationCheck:
    source_dir = "src" if os.path.isdir(os.path.join(project_path, "src")) else "app"
    result = await run_command(
        [NPX_BINARY, "--no-install", "madge", "--circular", "--json",
         "--extensions", "ts,tsx", f"{source_dir}/"],
        cwd=project_path,
        timeout=VERIFY_CIRCULAR_TIMEOUT,
    )
    unavailable = VerificationCheck(
        name="circular-imports", passed=True,
        message="Could not check (madge may not be installed)",
    )
    if result.not_found or result.timed_out or result.error:
        return unavailable

    cycles: list[list[str]] = []
    try:
        payload = json.loads(result.stdout)
        if isinstance(payload, list):
            cycles = [c for c in payload if isinstance(c, list)]
        else:
            return unavailable
    except json.JSONDecodeError:
        if "circular" not in result.output.lower():
            return unavailable
        cycles = [[a, b] for a, b in _CYCLE_TEXT.findall(result.output)]

    if not cycles:
        return VerificationCheck(name="circular-imports", passed=True, message="No circular imports")
    return VerificationCheck(
        name="circular-imports",
        passed=False,
        message=f"{len(cycles)} circular import chain(s)",
        details=create_log_excerpt("\n".join(" -> ".join(c) for c in cycles)),
        errors=[
            ErrorLocation(file=f"{source_dir}/{c[0]}" if c else None, message=" -> ".join(c))
            for c in cycles
        ],
    )


_TRACE_UNRESOLVED = [
    re.compile(r"Module name '([^']+)' was not resolved"),
    re.compile(r"Module '([^']+)' not found"),
    re.compile(r"File '([^']+)' not found"),
]
_TRACE_IMPORTER = re.compile(r"Resolving module '([^']+)' from '([^']+)'")
_RELATIVE_IMPORT = re.compile(r"""(?:\bfrom\s*|\bimport\s*\(?\s*|\brequire\s*\(\s*)['"](\.{1,2}/[^'"]*)['"]""")


def _resolves(base_dir: str, specifier: str) -> bool:
    target = os.path.normpath(os.path.join(base_dir, specifier))
    if os.path.isfile(target):
        return True
    for ext in SOURCE_EXTENSIONS + (".json",):
        if os.path.isfile(target + ext):
            return True
        if os.path.isfile(os.path.join(target, "index" + ext)):
            return True
    return False


def scan_relative_imports(project_path: str) -> list[ErrorLocation]:
    """Relative imports in src/ and app/ that point at no file."""
    errors: list[ErrorLocation] = []
    for rel_dir in ("src", "app"):
        for path in iter_source_files(os.path.join(project_path, rel_dir)):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    lines = f.read().split("\n")
            except (OSError, UnicodeDecodeError):
                continue
            for number, line in enumerate(lines, start=1):
                for specifier in _RELATIVE_IMPORT.findall(line):
                    if not _resolves(os.path.dirname(path), specifier):
                        errors.append(ErrorLocation(
                            file=normalize_path(os.path.relpath(path, project_path)),
                            line=number,
                            message=f"Cannot resolve import '{specifier}'",
                        ))
    return errors


async def check_imports(project_path: str) -> VerificationCheck:
    errors: list[ErrorLocation] = []
    used_static_scan = True
    if os.path.isfile(os.path.join(project_path, "tsconfig.json")):
        result = await run_command(
            [NPX_BINARY, "tsc", "--noEmit", "--skipLibCheck", "--pretty", "false", "--traceResolution"],
            cwd=project_path,
            timeout=VERIFY_IMPORTS_TIMEOUT,
        )
        if not (result.not_found or result.timed_out or result.error):
            used_static_scan = False
            seen: set[tuple[str, str]] = set()
            importer = None
            for line in result.stdout.splitlines():
                resolving = _TRACE_IMPORTER.search(line)
                if resolving:
                    importer = normalize_path(resolving.group(2), project_path)
                    continue
                # Package type lookups are not project imports
                if importer and "node_modules" in importer:
                    continue
                for grammar in _TRACE_UNRESOLVED:
                    m = grammar.search(line)
                    if not m:
                        continue
                    key = (importer or "", m.group(1))
                    if key not in seen:
                        seen.add(key)
                        errors.append(ErrorLocation(file=importer, message=f"Unresolved: {m.group(1)}"))
                    break

    if used_static_scan:
        errors = scan_relative_imports(project_path)

    method = "static scan" if used_static_scan else "compiler trace"
    if errors:
        return VerificationCheck(
            name="imports", passed=False,
            message=f"{len(errors)} unresolved import(s) ({method})", errors=errors,
        )
    return VerificationCheck(name="imports", passed=True, message=f"All imports resolve ({method})")


# ---------------------------------------------------------------------------
# Suite
# ---------------------------------------------------------------------------
FULL_CHECKS: list[tuple[str, CheckFn]] = [
    ("required-files", check_required_files),
    ("package-json", check_package_json),
    ("app-config", check_app_config),
    ("typescript", check_typescript),
    ("circular-imports", check_circular_imports),
    ("navigation", check_navigation),
    ("imports", check_imports),
]

QUICK_CHECKS: list[tuple[str, CheckFn]] = [
    ("required-files", check_required_files),
    ("package-json", check_package_json),
    ("typescript", check_typescript),
]


async def _run_check(name: str, check: CheckFn, project_path: str) -> VerificationCheck:
    start = time.monotonic()
    try:
        result = await check(project_path)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.exception("Verification check '%s' crashed", name)
        result = VerificationCheck(name=name, passed=False, message=f"Check crashed: {e}")
    result.duration_seconds = round(time.monotonic() - start, 3)
    return result


async def _run_suite(project_path: str, checks: list[tuple[str, CheckFn]]) -> VerificationResult:
    start = time.monotonic()
    results = await asyncio.gather(*(_run_check(name, fn, project_path) for name, fn in checks))
    duration = time.monotonic() - start
    verification = VerificationResult(
        passed=all(c.passed for c in results),
        checks=list(results),
        summary=summarize_checks(list(results), duration),
        duration_seconds=round(duration, 3),
    )
    log = logger.info if verification.passed else logger.warning
    log("Verification of %s: %s", project_path, verification.summary)
    return verification


async def verify_generated_app(project_path: str) -> VerificationResult:
    """
    Run every verification check against ``project_path``.

    Parameters
    ----------
    project_path : str
        Generated project root.

    Returns
    -------
    VerificationResult
        ``passed`` is True only when every check passed.
    """
    return await _run_suite(project_path, FULL_CHECKS)


async def quick_verify(project_path: str) -> VerificationResult:
    """required-files, package-json and typescript only."""
    return await _run_suite(project_path, QUICK_CHECKS)
