"""
Type Annotation Fix
===================
Generator + applier for "Parameter 'x' implicitly has an 'any' type".

Inference Strategy:
    1. USAGE IN FILE: useState initial values, string/number/array
       method calls, boolean contexts.
    2. NAMING CONVENTIONS: is*/has* → boolean, *Count → number, ...
    3. The more confident of the two wins; below CONF_THRESHOLD there is
       no fix at all.

Applier targets, tried on the recorded line first and then on any line
declaring the name:
    const|let|var x =      →  const x: T =
    (a, x, b) / (x = 1)    →  (a, x: T, b) / (x: T = 1)
    x =>                   →  (x: T) =>
"""
import logging
import re
from typing import Optional

from quality_gate.fixes.source_edit import EditRejected, edit_file, read_source
from quality_gate.models.diagnostic import TypeAnnotationError
from quality_gate.models.fix import ApplyResult, TypeAnnotationFix
from quality_gate.utils.path_utils import resolve_in_project

logger = logging.getLogger(__name__)

CONF_THRESHOLD = 0.70


# ---------------------------------------------------------------------------
# 1. Naming conventions (ordered: first match wins)
# ---------------------------------------------------------------------------
def _prefix(*words: str) -> re.Pattern:
    return re.compile(rf"^(?:{'|'.join(words)})(?=[A-Z_])")


def _suffix(*words: str) -> re.Pattern:
    lower = "|".join(words)
    capitalized = "|".join(w[0].upper() + w[1:] for w in words)
    return re.compile(rf"(?:^(?:{lower})|(?<=[a-z0-9])(?:{capitalized})|_(?:{lower}))$")


_NAME_RULES: list[tuple[re.Pattern, str, float]] = [
    (_prefix("on", "handle"),                                "() => void",          0.85),
    (_prefix("is", "has"),                                   "boolean",             0.95),
    (_prefix("can", "should"),                               "boolean",             0.90),
    (_suffix("loading", "visible", "enabled", "disabled"),   "boolean",             0.90),
    (re.compile(r"^children$"),                              "React.ReactNode",     0.90),
    (_suffix("url", "uri"),                                  "string",              0.90),
    (_suffix("name", "title", "label", "message"),           "string",              0.85),
    (_suffix("path"),                                        "string",              0.85),
    (_suffix("text", "id"),                                  "string",              0.80),
    (_suffix("count", "index"),                              "number",              0.90),
    (_suffix("total", "price", "amount", "width", "height"), "number",              0.85),
    (_suffix("size"),                                        "number",              0.80),
    (_suffix("items", "list"),                               "any[]",               0.80),
    (_suffix("date"),                                        "Date",                0.85),
    (_suffix("time"),                                        "Date",                0.75),
    (re.compile(r"(?<=[a-z0-9])At$"),                        "Date",                0.70),
    (_suffix("ref"),                                         "React.RefObject<any>", 0.85),
    (_suffix("style"),                                       "ViewStyle",           0.80),
    (re.compile(r"[a-z]s$"),                                 "any[]",               0.60),
]


def infer_type_from_name(name: str) -> Optional[tuple[str, float]]:
    for regex, inferred, confidence in _NAME_RULES:
        if regex.search(name):
            return inferred, confidence
    return None


# ---------------------------------------------------------------------------
# 2. Usage in file
# ---------------------------------------------------------------------------
_STRING_METHODS = r"toLowerCase|toUpperCase|trim|split|startsWith|endsWith|replace|substring|charAt|padStart"
_NUMBER_METHODS = r"toFixed|toPrecision"
_ARRAY_METHODS = r"map|filter|reduce|forEach|find|findIndex|some|every|push|flatMap"


def _state_initial_type(initial: str) -> Optional[tuple[str, float]]:
    initial = initial.strip()
    if initial in ("true", "false"):
        return "boolean", 0.95
    if initial[:1] in ("'", '"', "`"):
        return "string", 0.95
    if re.match(r"^-?\d", initial):
        return "number", 0.95
    if initial.startswith("["):
        return "any[]", 0.90
    if initial.startswith("{"):
        return "Record<string, any>", 0.85
    if initial == "null":
        return "any | null", 0.70
    return None


def infer_type_from_usage(name: str, content: str) -> Optional[tuple[str, float]]:
    n = re.escape(name)
    state = re.search(
        rf"\[\s*{n}\s*,\s*set[\w$]+\s*\]\s*=\s*(?:React\.)?useState\s*\(\s*([^)]*?)\s*\)",
        content,
    )
    if state:
        inferred = _state_initial_type(state.group(1))
        if inferred:
            return inferred
    if re.search(rf"(?<![\w$.]){n}\??\.(?:{_STRING_METHODS})\s*\(", content):
        return "string", 0.90
    if re.search(rf"(?<![\w$.]){n}\??\.(?:{_NUMBER_METHODS})\s*\(", content):
        return "number", 0.90
    if re.search(rf"(?<![\w$.]){n}\??\.(?:{_ARRAY_METHODS})\s*\(", content):
        return "any[]", 0.85
    if re.search(rf"if\s*\(\s*!?\s*{n}\s*\)|!\s*{n}(?![\w$])|(?<![\w$.]){n}\s*&&", content):
        return "boolean", 0.75
    return None


def infer_type(name: str, content: str) -> Optional[tuple[str, float]]:
    """More confident of usage / naming inference; usage wins ties."""
    by_usage = infer_type_from_usage(name, content)
    by_name = infer_type_from_name(name)
    candidates = [c for c in (by_usage, by_name) if c is not None]
    if not candidates:
        return None
    return max(candidates, key=lambda c: c[1])


def generate_type_annotation_fix(parsed: TypeAnnotationError, project_root: str) -> Optional[TypeAnnotationFix]:
    """
    Propose an annotation for ``parsed.variable_name``.

    Returns None for anonymous diagnostics, unreadable files and
    inferences below CONF_THRESHOLD.
    """
    if not parsed.file or not parsed.variable_name or parsed.line < 1:
        return None
    path = resolve_in_project(project_root, parsed.file)
    try:
        content, _ = read_source(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None

    inferred = infer_type(parsed.variable_name, content)
    if inferred is None or inferred[1] < CONF_THRESHOLD:
        return None
    type_name, confidence = inferred
    return TypeAnnotationFix(
        file=parsed.file,
        line=parsed.line,
        variable_name=parsed.variable_name,
        inferred_type=type_name,
        confidence=confidence,
    )


# ---------------------------------------------------------------------------
# Applier
# ---------------------------------------------------------------------------
def _annotate_line(line: str, name: str, type_name: str, strict: bool) -> Optional[str]:
    """
    Annotated line, the line unchanged when already annotated, or None
    when ``name`` has no annotatable position on it. ``strict`` limits
    parameter matches to lines that look like function definitions.
    """
    n = re.escape(name)
    if re.search(rf"\b(?:const|let|var)\s+{n}\s*:|[(,]\s*{n}\s*\??\s*:", line):
        return line

    declaration = re.compile(rf"\b(const|let|var)\s+{n}\s*=(?!=)")
    if declaration.search(line):
        return declaration.sub(rf"\1 {name}: {type_name} =", line, count=1)

    arrow = re.compile(rf"(?<![\w$.]){n}\s*=>")
    if arrow.search(line):
        return arrow.sub(f"({name}: {type_name}) =>", line, count=1)

    if strict and not re.search(r"\bfunction\b|=>", line):
        return None
    parameter = re.compile(rf"([(,]\s*){n}(\s*(?:[,)]|=(?![=>])))")
    if parameter.search(line):
        return parameter.sub(rf"\g<1>{name}: {type_name}\g<2>", line, count=1)
    return None


def apply_type_annotation_fix(fix: TypeAnnotationFix, project_root: str) -> ApplyResult:
    """Insert ``: inferred_type`` after the variable or parameter."""
    if fix.line < 1:
        return ApplyResult(success=False, error="Invalid line number")
    path = resolve_in_project(project_root, fix.file)

    def transform(text: str) -> Optional[str]:
        lines = text.split("\n")
        idx = fix.line - 1
        in_range = idx < len(lines)

        if in_range:
            annotated = _annotate_line(lines[idx], fix.variable_name, fix.inferred_type, strict=False)
            if annotated is not None:
                if annotated == lines[idx]:
                    return None
                lines[idx] = annotated
                return "\n".join(lines)

        word = re.compile(rf"(?<![\w$]){re.escape(fix.variable_name)}(?![\w$])")
        for i, line in enumerate(lines):
            if i == idx or not word.search(line):
                continue
            annotated = _annotate_line(line, fix.variable_name, fix.inferred_type, strict=True)
            if annotated is not None:
                if annotated == line:
                    return None
                lines[i] = annotated
                return "\n".join(lines)

        if not in_range:
            raise EditRejected("Invalid line number")
        raise EditRejected("Could not find location to add annotation")

    return edit_file(path, transform)
