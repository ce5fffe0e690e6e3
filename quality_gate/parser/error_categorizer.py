"""
Error Categorizer
=================
Routes a RawDiagnostic to exactly one fix pattern, or to none.

Strategy:
    1. ORDERED REGISTRY: matchers are tried in registration order;
       the first matcher whose grammar matches wins.
    2. Each matcher owns several alternative grammars for the same
       defect (tsc wording, ESLint wording, runtime wording).
    3. No match → None. Callers report it as pattern "unknown";
       nothing is silently dropped.

New tool wordings are added with ``register_matcher`` or by extending a
matcher's grammars; orchestration code never changes.
"""
import re
from dataclasses import dataclass
from typing import Callable, Optional

from quality_gate.core.constants import (
    PATTERN_MISSING_IMPORT,
    PATTERN_UNREGISTERED_ROUTE,
    PATTERN_IMPORT_PATH,
    PATTERN_TYPE_ANNOTATION,
    PATTERN_UNUSED_IMPORT,
)
from quality_gate.models.diagnostic import (
    RawDiagnostic,
    ParsedError,
    MissingImportError,
    UnregisteredRouteError,
    ImportPathError,
    TypeAnnotationError,
    UnusedImportError,
)


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PatternMatcher:
    """
    Recognition grammar for one fix pattern.

    Attributes
    ----------
    pattern : str
        Pattern id produced by this matcher.
    grammars : tuple[re.Pattern, ...]
        Alternatives tried in order against the diagnostic message.
    build : Callable
        Turns the winning match plus the diagnostic into a ParsedError.
    """
    pattern: str
    grammars: tuple[re.Pattern, ...]
    build: Callable[[re.Match, RawDiagnostic], ParsedError]

    def match(self, diagnostic: RawDiagnostic) -> Optional[ParsedError]:
        for grammar in self.grammars:
            m = grammar.search(diagnostic.message)
            if m:
                return self.build(m, diagnostic)
        return None


def _line(diagnostic: RawDiagnostic) -> int:
    return diagnostic.line or 0


def _build_missing_import(m: re.Match, d: RawDiagnostic) -> ParsedError:
    return MissingImportError(file=d.file, line=_line(d), symbol=m.group(1), message=d.message)


def _build_unregistered_route(m: re.Match, d: RawDiagnostic) -> ParsedError:
    return UnregisteredRouteError(
        file=d.file, screen_name=m.group(1), screen_path=d.file, message=d.message,
    )


def _build_import_path(m: re.Match, d: RawDiagnostic) -> ParsedError:
    return ImportPathError(file=d.file, line=_line(d), import_path=m.group(1), message=d.message)


def _build_type_annotation(m: re.Match, d: RawDiagnostic) -> ParsedError:
    variable = m.group(1) if m.groups() else ""
    return TypeAnnotationError(
        file=d.file, line=_line(d), column=d.column,
        variable_name=variable or "", message=d.message,
    )


def _build_unused_import(m: re.Match, d: RawDiagnostic) -> ParsedError:
    return UnusedImportError(file=d.file, line=_line(d), import_name=m.group(1), message=d.message)


# ---------------------------------------------------------------------------
# Registry (order matters: first match wins)
# ---------------------------------------------------------------------------
_MATCHERS: list[PatternMatcher] = [
    PatternMatcher(
        pattern=PATTERN_MISSING_IMPORT,
        grammars=(
            re.compile(r"Cannot find name ['\"]([\w$]+)['\"]"),
            re.compile(r"['\"]([\w$]+)['\"] is not defined"),
            re.compile(r"JSX element ['\"]([\w$.]+)['\"]"),
        ),
        build=_build_missing_import,
    ),
    PatternMatcher(
        pattern=PATTERN_UNREGISTERED_ROUTE,
        grammars=(
            re.compile(r"Screen ['\"]([\w$-]+)['\"] is not registered"),
            re.compile(r"The action ['\"]\w+['\"] with payload \{\s*\"name\"\s*:\s*\"([\w$-]+)\""),
            re.compile(r"No route named ['\"]([\w$-]+)['\"]"),
        ),
        build=_build_unregistered_route,
    ),
    PatternMatcher(
        pattern=PATTERN_IMPORT_PATH,
        grammars=(
            re.compile(r"Cannot resolve import:\s*['\"]([^'\"]+)['\"]"),
            re.compile(r"Cannot find module ['\"]([^'\"]+)['\"]"),
            re.compile(r"Unable to resolve path to module ['\"]([^'\"]+)['\"]"),
        ),
        build=_build_import_path,
    ),
    PatternMatcher(
        pattern=PATTERN_TYPE_ANNOTATION,
        grammars=(
            re.compile(r"Parameter ['\"]([\w$]+)['\"] implicitly has an? ['\"]any['\"] type"),
            re.compile(r"Variable ['\"]([\w$]+)['\"] implicitly has (?:an? )?type"),
            re.compile(r"Unexpected any\. Specify a different type"),
        ),
        build=_build_type_annotation,
    ),
    PatternMatcher(
        pattern=PATTERN_UNUSED_IMPORT,
        grammars=(
            re.compile(r"['\"]([\w$]+)['\"] is declared but (?:its value is )?never (?:used|read)"),
            re.compile(r"['\"]([\w$]+)['\"] is defined but never used"),
            re.compile(r"^['\"]?([\w$]+)['\"]? is assigned a value but never used"),
        ),
        build=_build_unused_import,
    ),
]


def register_matcher(matcher: PatternMatcher, before: Optional[str] = None) -> None:
    """
    Add a matcher to the registry.

    Parameters
    ----------
    matcher : PatternMatcher
        Matcher to add.
    before : str | None
        Pattern id of an existing matcher to insert in front of;
        appended at the end when None or not found.
    """
    if before is not None:
        for i, existing in enumerate(_MATCHERS):
            if existing.pattern == before:
                _MATCHERS.insert(i, matcher)
                return
    _MATCHERS.append(matcher)


def unregister_matcher(matcher: PatternMatcher) -> None:
    if matcher in _MATCHERS:
        _MATCHERS.remove(matcher)


def get_matchers() -> list[PatternMatcher]:
    return list(_MATCHERS)


def categorize_error(diagnostic: RawDiagnostic) -> Optional[ParsedError]:
    """
    Derive the ParsedError for ``diagnostic``.

    Parameters
    ----------
    diagnostic : RawDiagnostic
        Any tool diagnostic.

    Returns
    -------
    ParsedError | None
        The first matching pattern's parsed form; None for "unknown".
    """
    for matcher in _MATCHERS:
        parsed = matcher.match(diagnostic)
        if parsed is not None:
            return parsed
    return None


def is_auto_fixable(diagnostic: RawDiagnostic) -> bool:
    """True when some fix pattern recognizes ``diagnostic``."""
    return categorize_error(diagnostic) is not None
