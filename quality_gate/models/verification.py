"""
Verification Models
===================
Result types of the structural Verification Suite.

A VerificationCheck reports at most MAX_REPORTED_ERRORS error locations and
at most OUTPUT_EXCERPT_CHARS of details; longer inputs are truncated on
construction.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from quality_gate.core.config import MAX_REPORTED_ERRORS, OUTPUT_EXCERPT_CHARS


class ErrorLocation(BaseModel):
    file: Optional[str] = None
    line: Optional[int] = None
    message: str


class VerificationCheck(BaseModel):
    name: str
    passed: bool
    message: Optional[str] = None
    details: Optional[str] = None
    errors: list[ErrorLocation] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @field_validator("errors")
    @classmethod
    def _cap_errors(cls, v: list[ErrorLocation]) -> list[ErrorLocation]:
        return v[:MAX_REPORTED_ERRORS]

    @field_validator("details")
    @classmethod
    def _cap_details(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v[:OUTPUT_EXCERPT_CHARS]


class VerificationResult(BaseModel):
    passed: bool
    checks: list[VerificationCheck] = Field(default_factory=list)
    summary: str = ""
    duration_seconds: float = 0.0

    def failed_checks(self) -> list[VerificationCheck]:
        return [c for c in self.checks if not c.passed]
