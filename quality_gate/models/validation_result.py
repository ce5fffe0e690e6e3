"""
Validation Result Models
========================
StageResult — outcome of one Stage Runner (one external tool).
TierResult  — outcome of one escalation tier (AND over its stages).

Invariants:
    StageResult.passed  ⟺ no diagnostic of severity "error".
    TierResult.passed   ⟺ every executed StageResult passed.
    TierResult.tier is what the caller asked for; executed_tier is the
    deepest tier whose stages actually ran.
"""
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from quality_gate.models.diagnostic import RawDiagnostic
from quality_gate.utils.log_excerpt import create_log_excerpt


class StageResult(BaseModel):
    name: str
    duration_seconds: float = 0.0
    errors: list[RawDiagnostic] = Field(default_factory=list)
    warnings: list[RawDiagnostic] = Field(default_factory=list)
    output: Optional[str] = None

    @field_validator("output")
    @classmethod
    def _truncate_output(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return create_log_excerpt(v)

    @model_validator(mode="after")
    def _split_by_severity(self):
        # Only error-severity diagnostics may fail a stage
        misfiled = [d for d in self.errors if d.severity != "error"]
        if misfiled:
            self.errors = [d for d in self.errors if d.severity == "error"]
            self.warnings = list(self.warnings) + misfiled
        return self

    @computed_field
    @property
    def passed(self) -> bool:
        return not self.errors


class TierResult(BaseModel):
    tier: str
    executed_tier: str
    stages: dict[str, StageResult] = Field(default_factory=dict)
    errors: list[RawDiagnostic] = Field(default_factory=list)
    warnings: list[RawDiagnostic] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @computed_field
    @property
    def passed(self) -> bool:
        return all(stage.passed for stage in self.stages.values())

    @classmethod
    def from_stages(cls, tier: str, executed_tier: str,
                    stages: dict[str, StageResult],
                    duration_seconds: float) -> "TierResult":
        """Aggregate diagnostics of ``stages`` in execution order."""
        errors: list[RawDiagnostic] = []
        warnings: list[RawDiagnostic] = []
        for stage in stages.values():
            errors.extend(stage.errors)
            warnings.extend(stage.warnings)
        return cls(
            tier=tier,
            executed_tier=executed_tier,
            stages=stages,
            errors=errors,
            warnings=warnings,
            duration_seconds=round(duration_seconds, 3),
        )
