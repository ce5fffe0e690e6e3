"""
POST /verify
Runs the Verification Suite (or its quick variant) against a generated
project.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from quality_gate.api.common import require_project_dir
from quality_gate.models.verification import VerificationResult
from quality_gate.services.verification import quick_verify, verify_generated_app

router = APIRouter()


class VerifyRequest(BaseModel):
    project_path: str
    quick: bool = False


@router.post("/verify", response_model=VerificationResult)
async def verify_project(request: VerifyRequest):
    project_path = require_project_dir(request.project_path)
    if request.quick:
        return await quick_verify(project_path)
    return await verify_generated_app(project_path)
