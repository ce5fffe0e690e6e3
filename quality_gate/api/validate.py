"""
POST /validate
Runs a validation tier (with escalation) against a generated project and
returns the TierResult.
"""
import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from quality_gate.api.common import require_project_dir
from quality_gate.executor.tier_controller import TierController
from quality_gate.models.validation_result import TierResult

logger = logging.getLogger(__name__)

router = APIRouter()


class ValidateRequest(BaseModel):
    project_path: str
    tier: Literal["tier1", "tier2", "tier3"] = "tier1"


def get_tier_controller() -> TierController:
    return TierController()


@router.post("/validate", response_model=TierResult)
async def validate_project(request: ValidateRequest):
    project_path = require_project_dir(request.project_path)
    logger.info("Validating %s at %s", project_path, request.tier)
    return await get_tier_controller().run_tier(project_path, request.tier)
