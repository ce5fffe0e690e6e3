"""
Diagnostic Models
=================
Pydantic models for tool diagnostics and their categorized forms.

RawDiagnostic   — one location-tagged message from a tool; immutable.
ParsedError     — tagged union (discriminator ``pattern``) holding the
                  pattern-specific fields extracted by the Error Categorizer.
                  At most one ParsedError is derived per RawDiagnostic.
"""
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RawDiagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str = ""
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    severity: Literal["error", "warning"] = "error"
    rule: Optional[str] = None
    source: str = ""

    def location(self) -> str:
        """``file:line:column`` with missing parts omitted."""
        parts = [self.file or "<unknown>"]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)


# ---------------------------------------------------------------------------
# Parsed errors, one model per fix pattern
# ---------------------------------------------------------------------------
class MissingImportError(BaseModel):
    pattern: Literal["missing-import"] = "missing-import"
    file: str
    line: int = 0
    symbol: str
    message: str = ""


class UnregisteredRouteError(BaseModel):
    pattern: Literal["unregistered-route"] = "unregistered-route"
    file: str
    screen_name: str
    screen_path: str = ""
    message: str = ""


class ImportPathError(BaseModel):
    pattern: Literal["wrong-import-path"] = "wrong-import-path"
    file: str
    line: int = 0
    import_path: str
    message: str = ""


class TypeAnnotationError(BaseModel):
    pattern: Literal["missing-type-annotation"] = "missing-type-annotation"
    file: str
    line: int = 0
    column: Optional[int] = None
    variable_name: str = ""
    message: str = ""


class UnusedImportError(BaseModel):
    pattern: Literal["unused-import"] = "unused-import"
    file: str
    line: int = 0
    import_name: str
    message: str = ""


ParsedError = Annotated[
    Union[
        MissingImportError,
        UnregisteredRouteError,
        ImportPathError,
        TypeAnnotationError,
        UnusedImportError,
    ],
    Field(discriminator="pattern"),
]
