"""
Fix Registry
============
Pattern id → (generator, applier) pairs used by the Auto-Fix Orchestrator.

Every generator is called as ``generate(parsed, project_root, symbol_index)``
and every applier as ``apply(fix, project_root)``.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from quality_gate.core.constants import (
    PATTERN_MISSING_IMPORT,
    PATTERN_UNREGISTERED_ROUTE,
    PATTERN_IMPORT_PATH,
    PATTERN_TYPE_ANNOTATION,
    PATTERN_UNUSED_IMPORT,
)
from quality_gate.fixes.import_path import apply_import_path_fix, generate_import_path_fix
from quality_gate.fixes.missing_import import apply_import_fix, generate_missing_import_fix
from quality_gate.fixes.type_annotation import apply_type_annotation_fix, generate_type_annotation_fix
from quality_gate.fixes.unregistered_route import apply_route_fix, generate_route_fix
from quality_gate.fixes.unused_import import apply_unused_import_fix, generate_unused_import_fix
from quality_gate.models.fix import ApplyResult


@dataclass(frozen=True)
class FixHandler:
    generate: Callable
    apply: Callable[..., ApplyResult]


def _ignore_index(generator: Callable) -> Callable:
    def generate(parsed, project_root, symbol_index=None):
        return generator(parsed, project_root)
    return generate


FIX_HANDLERS: dict[str, FixHandler] = {
    PATTERN_MISSING_IMPORT:     FixHandler(generate_missing_import_fix, apply_import_fix),
    PATTERN_UNREGISTERED_ROUTE: FixHandler(_ignore_index(generate_route_fix), apply_route_fix),
    PATTERN_IMPORT_PATH:        FixHandler(_ignore_index(generate_import_path_fix), apply_import_path_fix),
    PATTERN_TYPE_ANNOTATION:    FixHandler(_ignore_index(generate_type_annotation_fix), apply_type_annotation_fix),
    PATTERN_UNUSED_IMPORT:      FixHandler(_ignore_index(generate_unused_import_fix), apply_unused_import_fix),
}


def get_handler(pattern: str) -> Optional[FixHandler]:
    return FIX_HANDLERS.get(pattern)
