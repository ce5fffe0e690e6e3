"""
POST /auto-fix
Applies confidence-gated fixes for the given diagnostics and returns the
AutoFixReport. One orchestrator instance serves all requests so writes to
the same file are serialized across requests.
"""
import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from quality_gate.agents.auto_fixer import AutoFixOrchestrator
from quality_gate.api.common import require_project_dir
from quality_gate.core.config import AUTO_FIX_MIN_CONFIDENCE, AUTO_FIX_MAX_FIXES
from quality_gate.models.auto_fix_report import AutoFixReport
from quality_gate.models.diagnostic import RawDiagnostic

logger = logging.getLogger(__name__)

router = APIRouter()

_fixer = AutoFixOrchestrator()


class AutoFixRequest(BaseModel):
    project_path: str
    diagnostics: list[RawDiagnostic] = Field(default_factory=list)
    min_confidence: float = AUTO_FIX_MIN_CONFIDENCE
    dry_run: bool = False
    max_fixes: Optional[int] = Field(default=None, ge=0)


@router.post("/auto-fix", response_model=AutoFixReport)
async def auto_fix(request: AutoFixRequest):
    project_path = require_project_dir(request.project_path)
    logger.info("Auto-fixing %d diagnostics in %s", len(request.diagnostics), project_path)
    return await _fixer.auto_fix(
        request.diagnostics,
        project_path,
        min_confidence=request.min_confidence,
        dry_run=request.dry_run,
        max_fixes=request.max_fixes if request.max_fixes is not None else AUTO_FIX_MAX_FIXES,
    )
