"""
Shared request helpers for the gate endpoints.
"""
import os

from fastapi import HTTPException


def require_project_dir(project_path: str) -> str:
    """Absolute project path, or HTTP 400 when it is not a directory."""
    absolute = os.path.abspath(project_path)
    if not os.path.isdir(absolute):
        raise HTTPException(status_code=400, detail=f"Project path is not a directory: {project_path}")
    return absolute
