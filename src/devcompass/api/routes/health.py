"""
Health and Schema Routes.

Liveness, health and schema-registry endpoints.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from devcompass.api.utils.state_helpers import get_submission_store
from devcompass.config import settings
from devcompass.config.validation_constants import SKILL_FIELDS, registry_as_dict
from devcompass.utils.submission_store import SubmissionStore

router = APIRouter(tags=["health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def root() -> JSONResponse:
    """Liveness check for the hosting platform. Never rate limited."""
    return JSONResponse(
        {
            "status": "ok",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "timestamp": _timestamp(),
        }
    )


@router.get("/api/health")
async def health(
    store: Optional[SubmissionStore] = Depends(get_submission_store),
) -> JSONResponse:
    """Report service status and whether a database is configured."""
    return JSONResponse(
        {
            "status": "ok",
            "timestamp": _timestamp(),
            "database": "connected" if store is not None else "not configured",
        }
    )


@router.get("/api/schema")
async def schema() -> JSONResponse:
    """Expose the field registry so the form renders the options the API validates.

    Returns:
        JSONResponse:
            {
                "fields": {"location": {"label": ..., "options": [...], ...}, ...},
                "skillFields": ["cloudPlatforms", ...],
                "minimumSkills": 1
            }
    """
    return JSONResponse(
        {
            "fields": registry_as_dict(),
            "skillFields": list(SKILL_FIELDS),
            "minimumSkills": 1,
        }
    )
