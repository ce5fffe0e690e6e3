"""
Path Utils
==========
Path normalisation and project-relative conversion helpers.

Responsibilities:
    - Normalise path separators to forward slashes
    - Resolve diagnostic file paths against the project root
    - Walk source trees while skipping dependency/build directories
    - Compute relative ES module specifiers between two source files
"""
import os
from typing import Iterator

SOURCE_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")

# Directories never scanned for project sources
SKIP_DIRS = {
    "node_modules", ".git", ".expo", "dist", "build", "ios", "android",
    "coverage", ".maestro", "__tests__",
}


def normalize_path(path: str) -> str:
    """Forward slashes, no leading './'."""
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def resolve_in_project(project_root: str, file_path: str) -> str:
    """Return an absolute path for a (possibly project-relative) file path."""
    if os.path.isabs(file_path):
        return file_path
    return os.path.normpath(os.path.join(project_root, file_path))


def to_project_relative(project_root: str, file_path: str) -> str:
    """Project-relative, forward-slash form of ``file_path``."""
    absolute = resolve_in_project(project_root, file_path)
    return normalize_path(os.path.relpath(absolute, project_root))


def strip_source_extension(path: str) -> str:
    for ext in SOURCE_EXTENSIONS:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def iter_source_files(root_dir: str) -> Iterator[str]:
    """
    Yield absolute paths of TypeScript/JavaScript sources under ``root_dir``.

    Declaration files (``*.d.ts``) and SKIP_DIRS are ignored. Traversal
    order is sorted so results are deterministic.
    """
    if not os.path.isdir(root_dir):
        return
    for current, dirs, files in os.walk(root_dir):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS and not d.startswith("."))
        for name in sorted(files):
            if name.endswith(".d.ts"):
                continue
            if name.endswith(SOURCE_EXTENSIONS):
                yield os.path.join(current, name)


def relative_import_path(from_file: str, target_file: str) -> str:
    """
    Compute the module specifier ``from_file`` should use to import ``target_file``.

    Parameters
    ----------
    from_file : str
        Absolute path of the importing file.
    target_file : str
        Absolute path of the imported file.

    Returns
    -------
    str
        Relative specifier such as ``./utils/currency`` or ``../hooks``.
        The source extension and a trailing ``/index`` are dropped.
    """
    rel = os.path.relpath(target_file, os.path.dirname(from_file))
    rel = strip_source_extension(normalize_path(rel))
    if rel.endswith("/index"):
        rel = rel[: -len("/index")]
    elif rel == "index":
        rel = "."
    if not rel.startswith("."):
        rel = "./" + rel
    return rel
