"""
Symbol Index
============
Export scan of the conventional source directories of a generated project,
used to resolve symbols that are not in the curated framework table.

Cache scope:
    - One index per project root, owned by whoever created it
      (the Auto-Fix Orchestrator creates one per invocation).
    - Built lazily on the first lookup, dropped with invalidate().
    - No module-level state.
"""
import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

from quality_gate.utils.path_utils import iter_source_files

logger = logging.getLogger(__name__)

# Scanned in order; the first file exporting a symbol wins
SEARCH_DIRS: list[str] = [
    "src/components",
    "src/hooks",
    "src/services",
    "src/utils",
    "src/types",
    "src/lib",
    "src/constants",
    "components",
    "hooks",
    "services",
    "utils",
    "types",
    "lib",
    "constants",
]

_NAMED_DECLARATION = re.compile(
    r"^export\s+(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum)\s+([\w$]+)",
    re.MULTILINE,
)
_EXPORT_LIST = re.compile(r"^export\s+(?:type\s+)?\{([^}]*)\}", re.MULTILINE)
_DEFAULT_DECLARATION = re.compile(
    r"^export\s+default\s+(?:async\s+)?(?:abstract\s+)?(?:function\*?|class)\s+([\w$]+)",
    re.MULTILINE,
)
_DEFAULT_IDENTIFIER = re.compile(r"^export\s+default\s+([A-Za-z_$][\w$]*)\s*;?\s*$", re.MULTILINE)


@dataclass(frozen=True)
class ExportLocation:
    symbol: str
    file: str
    is_default: bool


def scan_exports(path: str) -> list[ExportLocation]:
    """Exports declared by one source file. Unreadable files yield []."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Skipping unreadable source %s: %s", path, e)
        return []

    found: list[ExportLocation] = []
    for m in _NAMED_DECLARATION.finditer(content):
        found.append(ExportLocation(m.group(1), path, False))
    for m in _EXPORT_LIST.finditer(content):
        for raw in m.group(1).split(","):
            spec = " ".join(raw.split())
            if not spec:
                continue
            local = spec.split(" as ")[-1].strip()
            if local == "default":
                continue
            found.append(ExportLocation(local, path, False))
    for regex in (_DEFAULT_DECLARATION, _DEFAULT_IDENTIFIER):
        for m in regex.finditer(content):
            found.append(ExportLocation(m.group(1), path, True))
    return found


class SymbolIndex:
    """
    Lazily-built symbol → export location map for one project.

    Usage:
        index = SymbolIndex(project_root)
        location = index.lookup("formatCurrency")
    """

    def __init__(self, project_root: str) -> None:
        self.project_root = project_root
        self._exports: Optional[dict[str, ExportLocation]] = None

    def _build(self) -> dict[str, ExportLocation]:
        exports: dict[str, ExportLocation] = {}
        scanned: set[str] = set()
        for rel_dir in SEARCH_DIRS:
            for path in iter_source_files(os.path.join(self.project_root, rel_dir)):
                if path in scanned:
                    continue
                scanned.add(path)
                for location in scan_exports(path):
                    existing = exports.get(location.symbol)
                    # Named exports beat default exports of the same name
                    if existing is None or (existing.is_default and not location.is_default):
                        exports[location.symbol] = location
        logger.debug("Indexed %d exports from %d files under %s",
                     len(exports), len(scanned), self.project_root)
        return exports

    def lookup(self, symbol: str) -> Optional[ExportLocation]:
        if self._exports is None:
            self._exports = self._build()
        return self._exports.get(symbol)

    def invalidate(self) -> None:
        self._exports = None

    def __len__(self) -> int:
        if self._exports is None:
            self._exports = self._build()
        return len(self._exports)
