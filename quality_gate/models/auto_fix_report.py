"""
Auto-Fix Report Model
=====================
Per-diagnostic outcome of one auto-fix invocation.

applied — fix accepted and written (or recorded only, in dry run)
skipped — no pattern, no fix, duplicate, or below the confidence gate
failed  — the applier could not perform the edit

``success`` is False exactly when at least one application failed.
"""
from pydantic import BaseModel, Field, computed_field


class AppliedFix(BaseModel):
    pattern: str
    file: str
    description: str
    dry_run: bool = False


class SkippedFix(BaseModel):
    pattern: str
    file: str
    reason: str


class FailedFix(BaseModel):
    pattern: str
    file: str
    reason: str


class AutoFixReport(BaseModel):
    applied: list[AppliedFix] = Field(default_factory=list)
    skipped: list[SkippedFix] = Field(default_factory=list)
    failed: list[FailedFix] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def fix_count(self) -> int:
        return len(self.applied)
