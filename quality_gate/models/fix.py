"""
Fix Models
==========
Candidate edits proposed by the Fix Generators.

A Fix is a proposal, not an applied change. Every variant carries the file
it targets, a confidence in [0, 1] and a human-readable ``describe()``.
The ``pattern`` field discriminates the union.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from quality_gate.core.constants import ARROW


class FixBase(BaseModel):
    file: str
    confidence: float = Field(ge=0.0, le=1.0)


class ImportFix(FixBase):
    pattern: Literal["missing-import"] = "missing-import"
    symbol: str
    module: str
    is_default: bool = False
    import_statement: str

    def describe(self) -> str:
        return f"Added import: {self.import_statement}"


class RouteFix(FixBase):
    pattern: Literal["unregistered-route"] = "unregistered-route"
    screen_name: str
    screen_path: str = ""
    navigator_type: Literal["stack", "tab", "drawer"] = "stack"
    import_statement: str = ""
    # Empty for file-based routers: the route exists by virtue of the file
    screen_element: str = ""

    @property
    def navigation_file(self) -> str:
        return self.file

    def describe(self) -> str:
        if not self.screen_element:
            return f"Screen '{self.screen_name}' is routed by file location in {self.file}"
        return f"Registered screen '{self.screen_name}' in {self.navigator_type} navigator"


class ImportPathFix(FixBase):
    pattern: Literal["wrong-import-path"] = "wrong-import-path"
    line: int = 0
    old_path: str
    new_path: str

    def describe(self) -> str:
        return f"Fixed import path: '{self.old_path}' {ARROW} '{self.new_path}'"


class TypeAnnotationFix(FixBase):
    pattern: Literal["missing-type-annotation"] = "missing-type-annotation"
    line: int
    variable_name: str
    inferred_type: str

    def describe(self) -> str:
        return f"Added type annotation: {self.variable_name}: {self.inferred_type}"


class UnusedImportFix(FixBase):
    pattern: Literal["unused-import"] = "unused-import"
    line: int
    import_name: str
    action: Literal["remove-line", "remove-specifier"]

    def describe(self) -> str:
        return f"Removed unused import: {self.import_name}"


Fix = Annotated[
    Union[ImportFix, RouteFix, ImportPathFix, TypeAnnotationFix, UnusedImportFix],
    Field(discriminator="pattern"),
]


class ApplyResult(BaseModel):
    """Outcome of one applier call. ``changed`` is False for idempotent no-ops."""
    success: bool
    changed: bool = False
    error: Optional[str] = None
