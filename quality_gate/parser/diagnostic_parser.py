"""
Diagnostic Parser
=================
Converts raw tool output into structured RawDiagnostic objects.

Pipeline (per tool):
    1. Prefer structured output (ESLint/Jest/madge JSON, JUnit XML)
    2. Fall back to line grammars when the structured form is absent
    3. Normalize file paths (project-relative, forward slashes)
    4. Drop diagnostics located in dependency directories
    5. Deduplicate by (file, line, column, message)

Contract:
    - DETERMINISTIC: same output → same diagnostics, always.
    - Tolerant: partial results on parse failure, never crashes.
    - Never decides pass/fail: severity is reported, the Stage Runner
      derives the verdict.
"""
import json
import logging
import re
import xml.etree.ElementTree as ET
from typing import Any, Optional

from quality_gate.models.diagnostic import RawDiagnostic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path Ignore Rules
# ---------------------------------------------------------------------------
_IGNORE_PATTERNS: list[str] = ["node_modules", ".expo", "dist", "build", ".git"]


def _should_ignore(file_path: str) -> bool:
    """Return True if the file path is in an ignored directory."""
    normalized = file_path.replace("\\", "/")
    for pattern in _IGNORE_PATTERNS:
        if f"/{pattern}/" in f"/{normalized}/":
            return True
    return False


def normalize_path(raw_path: str, project_root: str = "") -> str:
    """
    Convert an absolute or messy path to a clean project-relative path.

    Parameters
    ----------
    raw_path : str
        The raw file path extracted from tool output.
    project_root : str
        The project root directory to strip.

    Returns
    -------
    str
        Clean, project-relative path with forward slashes.
    """
    path = raw_path.strip().strip("'\"")
    path = path.replace("\\", "/")

    if project_root:
        root = project_root.replace("\\", "/").rstrip("/")
        if path.startswith(root + "/"):
            path = path[len(root) + 1:]

    while path.startswith("./"):
        path = path[2:]
    return path


def _dedupe(diagnostics: list[RawDiagnostic]) -> list[RawDiagnostic]:
    seen: set[tuple] = set()
    unique: list[RawDiagnostic] = []
    for d in diagnostics:
        key = (d.file, d.line, d.column, d.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(d)
    return unique


def _extract_json(text: str, opener: str) -> Optional[Any]:
    """
    Decode the first JSON value starting with ``opener`` in ``text``.

    npx and friends may print banners before the payload, so the decode
    starts at the first opener character rather than at offset 0.
    """
    decoder = json.JSONDecoder()
    idx = text.find(opener)
    while idx != -1:
        try:
            value, _ = decoder.raw_decode(text[idx:])
            return value
        except json.JSONDecodeError:
            idx = text.find(opener, idx + 1)
    return None


# ---------------------------------------------------------------------------
# TypeScript compiler (--pretty false)
# ---------------------------------------------------------------------------
# src/App.tsx(12,5): error TS2304: Cannot find name 'View'.
_TSC_LOCATED = re.compile(
    r"^(?P<file>.+?)\((?P<line>\d+),(?P<col>\d+)\):\s*(?P<sev>error|warning)\s+"
    r"(?P<code>TS\d+):\s*(?P<msg>.+)$"
)
# error TS5058: The specified path does not exist: 'tsconfig.json'.
_TSC_GLOBAL = re.compile(r"^(?P<sev>error|warning)\s+(?P<code>TS\d+):\s*(?P<msg>.+)$")


def parse_tsc_output(output: str, project_root: str = "") -> list[RawDiagnostic]:
    """
    Parse ``tsc --pretty false`` output.

    Indented continuation lines are appended to the preceding message.
    """
    diagnostics: list[RawDiagnostic] = []
    current: Optional[dict] = None

    def _flush():
        if current is None or _should_ignore(current["file"]):
            return
        diagnostics.append(RawDiagnostic(**current))

    for raw_line in output.splitlines():
        line = raw_line.rstrip()
        if not line:
            continue
        m = _TSC_LOCATED.match(line)
        if m:
            _flush()
            current = {
                "file": normalize_path(m.group("file"), project_root),
                "line": int(m.group("line")),
                "column": int(m.group("col")),
                "message": m.group("msg").strip(),
                "severity": m.group("sev"),
                "rule": m.group("code"),
                "source": "tsc",
            }
            continue
        m = _TSC_GLOBAL.match(line)
        if m:
            _flush()
            current = {
                "file": "",
                "message": m.group("msg").strip(),
                "severity": m.group("sev"),
                "rule": m.group("code"),
                "source": "tsc",
            }
            continue
        if current is not None and raw_line[:1].isspace():
            current["message"] += "\n" + line.strip()

    _flush()
    return _dedupe(diagnostics)


# ---------------------------------------------------------------------------
# ESLint (--format json, unix format fallback)
# ---------------------------------------------------------------------------
# src/App.tsx:3:10: 'Foo' is defined but never used. [Error/no-unused-vars]
_ESLINT_UNIX = re.compile(
    r"^(?P<file>[^\s:][^:]*):(?P<line>\d+):(?P<col>\d+):\s*(?P<msg>.+?)"
    r"(?:\s+\[(?P<sev>Error|Warning)(?:/(?P<rule>[^\]]+))?\])?$"
)


def parse_eslint_output(output: str, project_root: str = "") -> list[RawDiagnostic]:
    """
    Parse ESLint output, preferring the JSON formatter.

    JSON severity 2 → error, 1 → warning. Fatal parse errors are errors.
    """
    payload = _extract_json(output, "[")
    if isinstance(payload, list) and all(
        isinstance(item, dict) and "filePath" in item for item in payload
    ):
        return _parse_eslint_json(payload, project_root)

    diagnostics: list[RawDiagnostic] = []
    for line in output.splitlines():
        m = _ESLINT_UNIX.match(line.strip())
        if not m:
            continue
        file_path = normalize_path(m.group("file"), project_root)
        if _should_ignore(file_path):
            continue
        diagnostics.append(RawDiagnostic(
            file=file_path,
            line=int(m.group("line")),
            column=int(m.group("col")),
            message=m.group("msg").strip(),
            severity="warning" if m.group("sev") == "Warning" else "error",
            rule=m.group("rule"),
            source="eslint",
        ))
    return _dedupe(diagnostics)


def _parse_eslint_json(payload: list, project_root: str) -> list[RawDiagnostic]:
    diagnostics: list[RawDiagnostic] = []
    for file_result in payload:
        file_path = normalize_path(str(file_result.get("filePath", "")), project_root)
        if _should_ignore(file_path):
            continue
        for msg in file_result.get("messages", []) or []:
            severity = "error" if msg.get("fatal") or msg.get("severity") == 2 else "warning"
            diagnostics.append(RawDiagnostic(
                file=file_path,
                line=msg.get("line"),
                column=msg.get("column"),
                message=str(msg.get("message", "")).strip(),
                severity=severity,
                rule=msg.get("ruleId"),
                source="eslint",
            ))
    return _dedupe(diagnostics)


# ---------------------------------------------------------------------------
# Jest (--json)
# ---------------------------------------------------------------------------
_ANSI = re.compile(r"\x1b\[[0-9;]*m")
# FAIL src/__tests__/cart.test.ts
_JEST_FAIL_LINE = re.compile(r"^\s*FAIL\s+(?P<file>\S+)")


def _first_line(text: str) -> str:
    for line in _ANSI.sub("", text).splitlines():
        if line.strip():
            return line.strip()
    return ""


def parse_jest_output(output: str, project_root: str = "") -> list[RawDiagnostic]:
    """
    Parse Jest output, preferring ``--json``.

    Each failing assertion becomes one error; a suite that failed to run
    (syntax error, missing module) becomes one error on the suite file.
    """
    payload = _extract_json(output, "{")
    if isinstance(payload, dict) and "testResults" in payload:
        diagnostics: list[RawDiagnostic] = []
        for suite in payload.get("testResults", []) or []:
            file_path = normalize_path(str(suite.get("name", "")), project_root)
            failed_assertions = [
                a for a in suite.get("assertionResults", []) or []
                if a.get("status") == "failed"
            ]
            for assertion in failed_assertions:
                location = assertion.get("location") or {}
                failure = _first_line("\n".join(assertion.get("failureMessages") or []))
                name = assertion.get("fullName") or assertion.get("title") or "test"
                diagnostics.append(RawDiagnostic(
                    file=file_path,
                    line=location.get("line"),
                    column=location.get("column"),
                    message=f"{name}: {failure}" if failure else name,
                    rule="test-failed",
                    source="jest",
                ))
            if suite.get("status") == "failed" and not failed_assertions:
                diagnostics.append(RawDiagnostic(
                    file=file_path,
                    message=_first_line(suite.get("message", "")) or "Test suite failed to run",
                    rule="suite-failed",
                    source="jest",
                ))
        return _dedupe(diagnostics)

    diagnostics = []
    for line in _ANSI.sub("", output).splitlines():
        m = _JEST_FAIL_LINE.match(line)
        if m:
            diagnostics.append(RawDiagnostic(
                file=normalize_path(m.group("file"), project_root),
                message="Test suite failed",
                rule="suite-failed",
                source="jest",
            ))
    return _dedupe(diagnostics)


# ---------------------------------------------------------------------------
# Maestro (text failure lines, JUnit XML)
# ---------------------------------------------------------------------------
# Flow 'login.yaml' failed at step 3: Element not found: "Sign in"
_MAESTRO_FAILURE = re.compile(
    r"(?:Flow|Test)\s+['\"]?(?P<flow>[^'\"\s]+\.ya?ml)['\"]?\s+failed"
    r"(?:\s+at\s+step\s+(?P<step>\d+))?[:\s]+(?P<reason>.+?)$",
    re.MULTILINE,
)


def parse_maestro_output(output: str) -> list[RawDiagnostic]:
    """Parse Maestro failure lines, then JUnit ``<failure>`` elements."""
    diagnostics: list[RawDiagnostic] = []
    for m in _MAESTRO_FAILURE.finditer(output):
        step = m.group("step")
        reason = m.group("reason").strip()
        diagnostics.append(RawDiagnostic(
            file=f".maestro/{m.group('flow')}",
            message=f"Step {step}: {reason}" if step else reason,
            rule="flow-failed",
            source="maestro",
        ))
    if diagnostics:
        return _dedupe(diagnostics)

    start = output.find("<testsuite")
    if start == -1:
        return diagnostics
    xml_start = output.rfind("<?xml", 0, start)
    document = output[xml_start if xml_start != -1 else start:]
    end = document.rfind(">")
    try:
        root = ET.fromstring(document[: end + 1])
    except ET.ParseError as e:
        logger.debug("Unparseable JUnit report: %s", e)
        return diagnostics

    for case in root.iter("testcase"):
        for failure in list(case.iter("failure")) + list(case.iter("error")):
            reason = failure.get("message") or _first_line(failure.text or "") or "failed"
            name = case.get("name") or case.get("classname") or "flow"
            diagnostics.append(RawDiagnostic(
                file=f".maestro/{name}" if name.endswith((".yaml", ".yml")) else "",
                message=f"{name}: {reason}",
                rule="flow-failed",
                source="maestro",
            ))
    return _dedupe(diagnostics)


# ---------------------------------------------------------------------------
# Expo prebuild and other generic CLIs
# ---------------------------------------------------------------------------
_GENERIC_ERROR = re.compile(r"^\s*(?:\S+Error|Error|error|ERROR)(?:\s*\[[^\]]*\])?:\s*(?P<msg>.+)$")


def parse_generic_errors(output: str, source: str) -> list[RawDiagnostic]:
    """Lines shaped like ``Error: message`` / ``CommandError: message``."""
    diagnostics = [
        RawDiagnostic(message=m.group("msg").strip(), source=source)
        for m in (_GENERIC_ERROR.match(_ANSI.sub("", line)) for line in output.splitlines())
        if m
    ]
    return _dedupe(diagnostics)
