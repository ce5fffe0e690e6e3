"""
Source Edit Helpers
===================
Whole-file read → transform → write used by every Fix Applier, plus the
import-statement parsing the appliers share.

Contract:
    - A transform returns the new text, None for "nothing to do", or
      raises EditRejected with a reason.
    - Writes go to a temporary file in the same directory and are moved
      into place with os.replace, so a file is never half-written.
    - Line endings are preserved (CRLF files stay CRLF).
    - edit_file never raises; it returns an ApplyResult.
"""
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from typing import Callable, Optional

from quality_gate.models.fix import ApplyResult

logger = logging.getLogger(__name__)


class EditRejected(Exception):
    """Raised by a transform when the expected code is not where it should be."""


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------
def read_source(path: str) -> tuple[str, str]:
    """Return ``(text with \\n line endings, original newline)``."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        raw = f.read()
    newline = "\r\n" if "\r\n" in raw else "\n"
    return raw.replace("\r\n", "\n"), newline


def write_source_atomic(path: str, text: str, newline: str = "\n") -> None:
    """Replace ``path`` with ``text`` through a temp file + os.replace."""
    if newline != "\n":
        text = text.replace("\n", newline)
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".qg-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        if os.path.exists(path):
            os.chmod(tmp_path, os.stat(path).st_mode & 0o777)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def edit_file(path: str, transform: Callable[[str], Optional[str]]) -> ApplyResult:
    """
    Apply ``transform`` to the file at ``path``.

    Parameters
    ----------
    path : str
        Absolute file path.
    transform : Callable[[str], str | None]
        Receives the file text (``\\n`` line endings). Returns the new
        text, or None when the file already has the desired content.

    Returns
    -------
    ApplyResult
        success=False with an error message on I/O failure or rejection.
    """
    try:
        text, newline = read_source(path)
    except FileNotFoundError:
        return ApplyResult(success=False, error=f"File not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        return ApplyResult(success=False, error=f"Could not read {path}: {e}")

    try:
        new_text = transform(text)
    except EditRejected as e:
        return ApplyResult(success=False, error=str(e))

    if new_text is None or new_text == text:
        return ApplyResult(success=True, changed=False)

    try:
        write_source_atomic(path, new_text, newline)
    except OSError as e:
        logger.error("Failed to write %s: %s", path, e)
        return ApplyResult(success=False, error=f"Could not write {path}: {e}")
    return ApplyResult(success=True, changed=True)


def collapse_blank_lines(text: str) -> str:
    """Three or more consecutive newlines become two."""
    return re.sub(r"\n{3,}", "\n\n", text)


# ---------------------------------------------------------------------------
# Import statements
# ---------------------------------------------------------------------------
_IMPORT_START = re.compile(r"^\s*import(?:\s|\{|\*)")
_STATEMENT_COMPLETE = re.compile(r"""(?:\bfrom\s*['"][^'"]+['"]|^\s*import\s+['"][^'"]+['"])""")
_DIRECTIVE = re.compile(r"""^\s*(?:#!|['"]use [\w ]+['"];?\s*$)""")

_MAX_STATEMENT_LINES = 100


def iter_import_statements(lines: list[str]) -> list[tuple[int, int]]:
    """
    Return ``(start, end)`` line index pairs (inclusive) of static imports.

    Multi-line statements (``import {\\n  A,\\n  B,\\n} from 'x';``) are
    reported as one range. Dynamic ``import(...)`` is ignored.
    """
    ranges: list[tuple[int, int]] = []
    i = 0
    while i < len(lines):
        if not _IMPORT_START.match(lines[i]):
            i += 1
            continue
        end = i
        text = lines[i]
        while not _STATEMENT_COMPLETE.search(text) and end + 1 < len(lines) \
                and end - i < _MAX_STATEMENT_LINES:
            end += 1
            text += "\n" + lines[end]
        if _STATEMENT_COMPLETE.search(text):
            ranges.append((i, end))
        i = end + 1
    return ranges


def find_import_block_end(lines: list[str]) -> int:
    """Index where a new import line should be inserted."""
    statements = iter_import_statements(lines)
    if statements:
        return statements[-1][1] + 1
    idx = 0
    while idx < len(lines) and _DIRECTIVE.match(lines[idx]):
        idx += 1
    return idx


_STATEMENT = re.compile(
    r"""^\s*import\s+(?P<type>type\s+)?(?P<clause>.*?)\s*\bfrom\s*"""
    r"""(?P<quote>['"])(?P<module>[^'"]+)(?P=quote)\s*(?P<semi>;?)\s*$""",
    re.DOTALL,
)


@dataclass
class NamedSpecifier:
    imported: str
    local: str
    text: str


@dataclass
class ImportClause:
    """Parsed form of one ``import ... from '...'`` statement."""
    module: str
    quote: str = "'"
    semicolon: bool = True
    type_only: bool = False
    default: Optional[str] = None
    namespace: Optional[str] = None
    named: list[NamedSpecifier] = field(default_factory=list)
    has_braces: bool = False
    multiline: bool = False
    trailing_comma: bool = False
    indent: str = "  "

    def local_names(self) -> list[str]:
        names = [n.local for n in self.named]
        if self.default:
            names.insert(0, self.default)
        if self.namespace:
            names.insert(0, self.namespace)
        return names

    def specifier_count(self) -> int:
        return len(self.local_names())

    def remove(self, name: str) -> bool:
        """Drop the specifier bound to ``name``. Returns False if absent."""
        if self.default == name:
            self.default = None
            return True
        if self.namespace == name:
            self.namespace = None
            return True
        for spec in self.named:
            if spec.local == name:
                self.named.remove(spec)
                return True
        return False

    def render(self) -> str:
        """Rebuild the statement, keeping quote, semicolon and brace layout."""
        parts: list[str] = []
        if self.default:
            parts.append(self.default)
        if self.namespace:
            parts.append(f"* as {self.namespace}")
        if self.named:
            if self.multiline:
                body = (",\n" + self.indent).join(s.text for s in self.named)
                tail = "," if self.trailing_comma else ""
                parts.append("{\n" + self.indent + body + tail + "\n}")
            else:
                parts.append("{ " + ", ".join(s.text for s in self.named) + " }")
        prefix = "import type " if self.type_only else "import "
        semi = ";" if self.semicolon else ""
        return f"{prefix}{', '.join(parts)} from {self.quote}{self.module}{self.quote}{semi}"


def parse_import_statement(statement: str) -> Optional[ImportClause]:
    """
    Parse an import statement. Side-effect imports and unparseable text
    return None.
    """
    m = _STATEMENT.match(statement)
    if not m:
        return None
    clause = ImportClause(
        module=m.group("module"),
        quote=m.group("quote"),
        semicolon=bool(m.group("semi")),
        type_only=bool(m.group("type")),
    )
    text = m.group("clause").strip()

    brace_open = text.find("{")
    if brace_open != -1:
        brace_close = text.rfind("}")
        if brace_close < brace_open:
            return None
        inner = text[brace_open + 1:brace_close]
        head = text[:brace_open].strip().rstrip(",").strip()
        clause.has_braces = True
        clause.multiline = "\n" in inner
        clause.trailing_comma = inner.rstrip().endswith(",")
        indent_match = re.search(r"\n([ \t]+)\S", inner)
        if indent_match:
            clause.indent = indent_match.group(1)
        for raw in inner.split(","):
            spec_text = " ".join(raw.split())
            if not spec_text:
                continue
            body = spec_text[5:] if spec_text.startswith("type ") else spec_text
            if " as " in body:
                imported, local = [p.strip() for p in body.split(" as ", 1)]
            else:
                imported = local = body.strip()
            clause.named.append(NamedSpecifier(imported, local, spec_text))
    else:
        head = text

    for part in [p.strip() for p in head.split(",") if p.strip()]:
        ns = re.match(r"^\*\s*as\s+([\w$]+)$", part)
        if ns:
            clause.namespace = ns.group(1)
        elif re.match(r"^[\w$]+$", part):
            clause.default = part
        else:
            return None
    return clause


def find_import_of(lines: list[str], name: str,
                   hint_index: Optional[int] = None) -> Optional[tuple[int, int, ImportClause]]:
    """
    Locate the import statement binding ``name``.

    The statement covering ``hint_index`` (the recorded diagnostic line)
    is checked first, then every statement in file order.
    """
    statements = iter_import_statements(lines)
    if hint_index is not None:
        statements.sort(key=lambda r: 0 if r[0] <= hint_index <= r[1] else 1)
    for start, end in statements:
        clause = parse_import_statement("\n".join(lines[start:end + 1]))
        if clause is not None and name in clause.local_names():
            return start, end, clause
    return None
