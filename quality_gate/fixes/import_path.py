"""
Import Path Fix
===============
Generator + applier for "Cannot find module './x'" style diagnostics.

Only project-local specifiers are considered (relative, ``@/``, ``~/``,
``src/``); a bare package name is a missing dependency, not a wrong path.

Confidence:
    unique file whose stem equals the last segment   → 0.95
    case-insensitive stem match                      → 0.85
    several equal candidates (nearest one chosen)    → 0.80
"""
import logging
import os
import re
from typing import Optional

from quality_gate.fixes.source_edit import EditRejected, edit_file
from quality_gate.models.diagnostic import ImportPathError
from quality_gate.models.fix import ApplyResult, ImportPathFix
from quality_gate.utils.path_utils import (
    iter_source_files,
    relative_import_path,
    resolve_in_project,
    strip_source_extension,
)

logger = logging.getLogger(__name__)

CONF_EXACT = 0.95
CONF_CASE_INSENSITIVE = 0.85
CONF_AMBIGUOUS = 0.80

SEARCH_DIRS: list[str] = ["src", "app", "components", "hooks", "services", "utils", "types", "lib"]

_LOCAL_PREFIXES = (".", "@/", "~/", "src/")


def _is_local_specifier(specifier: str) -> bool:
    return specifier.startswith(_LOCAL_PREFIXES)


def _candidates(project_root: str, stem: str) -> tuple[list[str], list[str]]:
    """Files (or index files of directories) named ``stem``: (exact, case-insensitive)."""
    exact: list[str] = []
    loose: list[str] = []
    seen: set[str] = set()
    for rel_dir in SEARCH_DIRS:
        for path in iter_source_files(os.path.join(project_root, rel_dir)):
            if path in seen:
                continue
            seen.add(path)
            name = strip_source_extension(os.path.basename(path))
            if name == "index":
                name = os.path.basename(os.path.dirname(path))
            if name == stem:
                exact.append(path)
            elif name.lower() == stem.lower():
                loose.append(path)
    return exact, loose


def _distance(from_file: str, target: str) -> int:
    return relative_import_path(from_file, target).count("/")


def generate_import_path_fix(parsed: ImportPathError, project_root: str) -> Optional[ImportPathFix]:
    """
    Propose a corrected module specifier for ``parsed.import_path``.

    Returns None for package specifiers, when nothing matches, or when the
    only match is the importing file itself.
    """
    if not parsed.file or not _is_local_specifier(parsed.import_path):
        return None

    stem = strip_source_extension(parsed.import_path.rstrip("/").split("/")[-1])
    if not stem or stem in (".", ".."):
        return None

    error_file = resolve_in_project(project_root, parsed.file)
    exact, loose = _candidates(project_root, stem)
    exact = [p for p in exact if p != error_file]
    loose = [p for p in loose if p != error_file]

    if len(exact) == 1:
        target, confidence = exact[0], CONF_EXACT
    elif exact:
        target = min(exact, key=lambda p: (_distance(error_file, p), p))
        confidence = CONF_AMBIGUOUS
    elif len(loose) == 1:
        target, confidence = loose[0], CONF_CASE_INSENSITIVE
    elif loose:
        target = min(loose, key=lambda p: (_distance(error_file, p), p))
        confidence = CONF_AMBIGUOUS
    else:
        return None

    new_path = relative_import_path(error_file, target)
    if new_path == parsed.import_path:
        return None

    return ImportPathFix(
        file=parsed.file,
        line=parsed.line,
        old_path=parsed.import_path,
        new_path=new_path,
        confidence=confidence,
    )


def _specifier_regex(specifier: str) -> re.Pattern:
    # from 'x' | import 'x' | import('x') | require('x'), either quote style
    return re.compile(
        r"""(?P<lead>\bfrom\s*|\bimport\s*\(?\s*|\brequire\s*\(\s*)(?P<q>['"])"""
        + re.escape(specifier)
        + r"(?P=q)"
    )


def apply_import_path_fix(fix: ImportPathFix, project_root: str) -> ApplyResult:
    """
    Rewrite ``old_path`` to ``new_path``, keeping the quote style.

    The recorded line is rewritten when it still holds the old specifier;
    otherwise every occurrence in the file is. A file that already uses
    the new specifier and no longer the old one is a no-op success.
    """
    if fix.line < 0:
        return ApplyResult(success=False, error="Invalid line number")
    path = resolve_in_project(project_root, fix.file)
    old_re = _specifier_regex(fix.old_path)
    new_re = _specifier_regex(fix.new_path)

    def _replace(segment: str) -> str:
        return old_re.sub(lambda m: f"{m.group('lead')}{m.group('q')}{fix.new_path}{m.group('q')}", segment)

    def transform(text: str) -> Optional[str]:
        lines = text.split("\n")
        idx = fix.line - 1
        if 0 <= idx < len(lines) and old_re.search(lines[idx]):
            lines[idx] = _replace(lines[idx])
            return "\n".join(lines)
        if old_re.search(text):
            return _replace(text)
        if new_re.search(text):
            return None
        raise EditRejected(f"Import of '{fix.old_path}' not found in {fix.file}")

    return edit_file(path, transform)
