"""
Unused Import Fix
=================
Generator + applier for "'X' is declared but its value is never read" and
"'X' is defined but never used" diagnostics.

Generator:
    Finds the import statement binding X (recorded line first, then any
    import in the file) and counts its specifiers: a lone specifier means
    the whole statement goes (remove-line), otherwise only X goes
    (remove-specifier). Confidence 0.95.

Applier:
    - First, last and interior specifiers, default + named mixes and
      multi-line statements are handled by re-rendering the parsed clause.
    - Zero specifiers left → whole statement removed.
    - Already absent → no-op success.
    - Runs of 3+ newlines collapse to a single blank line.
"""
import logging
import re
from typing import Optional

from quality_gate.fixes.source_edit import (
    collapse_blank_lines,
    edit_file,
    find_import_of,
    iter_import_statements,
    parse_import_statement,
    read_source,
)
from quality_gate.models.diagnostic import RawDiagnostic, UnusedImportError
from quality_gate.models.fix import ApplyResult, UnusedImportFix
from quality_gate.utils.path_utils import resolve_in_project

logger = logging.getLogger(__name__)

CONF_UNUSED_IMPORT = 0.95


def generate_unused_import_fix(parsed: UnusedImportError, project_root: str) -> Optional[UnusedImportFix]:
    """
    Propose removal of ``parsed.import_name``.

    Returns None when the file cannot be read or the name is not bound by
    an import (e.g. an unused local variable).
    """
    if not parsed.file:
        return None
    path = resolve_in_project(project_root, parsed.file)
    try:
        text, _ = read_source(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None

    lines = text.split("\n")
    hint = parsed.line - 1 if parsed.line > 0 else None
    found = find_import_of(lines, parsed.import_name, hint)
    if found is None:
        return None
    start, _, clause = found

    action = "remove-line" if clause.specifier_count() <= 1 else "remove-specifier"
    return UnusedImportFix(
        file=parsed.file,
        line=start + 1,
        import_name=parsed.import_name,
        action=action,
        confidence=CONF_UNUSED_IMPORT,
    )


def apply_unused_import_fix(fix: UnusedImportFix, project_root: str) -> ApplyResult:
    """Remove the unused binding described by ``fix``."""
    if fix.line < 1:
        return ApplyResult(success=False, error="Invalid line number")
    path = resolve_in_project(project_root, fix.file)

    def transform(text: str) -> Optional[str]:
        lines = text.split("\n")
        found = find_import_of(lines, fix.import_name, fix.line - 1)
        if found is None:
            # Already removed
            return None
        start, end, clause = found
        clause.remove(fix.import_name)
        if clause.specifier_count() == 0:
            del lines[start:end + 1]
        else:
            lines[start:end + 1] = clause.render().split("\n")
        return collapse_blank_lines("\n".join(lines))

    return edit_file(path, transform)


# ---------------------------------------------------------------------------
# Linter-free scan
# ---------------------------------------------------------------------------
def find_unused_imports(file_path: str, project_root: str) -> list[RawDiagnostic]:
    """
    Report imported names never referenced after the import block.

    Parameters
    ----------
    file_path : str
        Project-relative (or absolute) source path.
    project_root : str
        Generated project root.

    Returns
    -------
    list[RawDiagnostic]
        One warning-severity unused-import diagnostic per unused name;
        [] when the file cannot be read.
    """
    path = resolve_in_project(project_root, file_path)
    try:
        text, _ = read_source(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return []

    lines = text.split("\n")
    statements = iter_import_statements(lines)
    if not statements:
        return []
    body = "\n".join(lines[statements[-1][1] + 1:])
    # Comments do not count as usage
    body = re.sub(r"/\*.*?\*/", "", body, flags=re.DOTALL)
    body = re.sub(r"(?m)(?:^|(?<=\s))//[^\n]*", "", body)

    diagnostics: list[RawDiagnostic] = []
    for start, end in statements:
        clause = parse_import_statement("\n".join(lines[start:end + 1]))
        if clause is None:
            continue
        for name in clause.local_names():
            if name == "React":
                # Classic JSX runtime needs React in scope
                continue
            if re.search(rf"(?<![\w$.]){re.escape(name)}(?![\w$])", body):
                continue
            diagnostics.append(RawDiagnostic(
                file=file_path,
                line=start + 1,
                message=f"'{name}' is declared but its value is never read.",
                severity="warning",
                rule="unused-import",
                source="quality-gate",
            ))
    return diagnostics
