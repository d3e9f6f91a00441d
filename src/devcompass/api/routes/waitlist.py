"""
Waitlist API Routes.

Routes for submitting to the waitlist and reading aggregate statistics.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from devcompass.api.middleware.body_limit import payload_too_large
from devcompass.api.utils.state_helpers import get_pipeline, get_submission_store
from devcompass.config import settings
from devcompass.pipeline import SubmissionPipeline
from devcompass.utils.exceptions import (
    InternalError,
    ServiceUnavailable,
    StoreError,
    ValidationError,
)
from devcompass.utils.logger import get_logger
from devcompass.utils.stats import build_stats
from devcompass.utils.submission_store import SubmissionStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/waitlist", tags=["waitlist"])


@router.post("")
async def submit_waitlist(
    request: Request,
    pipeline: SubmissionPipeline = Depends(get_pipeline),
) -> JSONResponse:
    """Add a submission to the waitlist.

    The body is read and decoded here rather than through a Pydantic model so
    the pipeline sees the raw values and reports the first failing rule with
    its own message.

    Returns:
        JSONResponse 201:
            {"success": true, "message": "...", "id": "<submission id>"}

    Raises:
        PayloadTooLargeError 413: Body larger than MAX_BODY_BYTES.
        ValidationError 400: Body is not a JSON object, or a field is invalid.
        ConflictError 409: Email already on the waitlist.
        ServiceUnavailable 503: No database configured in production.
        InternalError 500: The store failed.
    """
    body = await request.body()
    if len(body) > settings.MAX_BODY_BYTES:
        raise payload_too_large()

    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid request body")

    result = await run_in_threadpool(pipeline.submit, payload)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED, content=result.to_response()
    )


@router.get("/stats")
async def get_waitlist_stats(
    store: Optional[SubmissionStore] = Depends(get_submission_store),
) -> JSONResponse:
    """Return histograms over every stored submission.

    Returns:
        JSONResponse with total, byRole, byLocation, byExperienceLevel,
        bySalaryRange, employmentStatus and topSkills.

    Raises:
        ServiceUnavailable 503: No database configured.
        InternalError 500: The store failed.
    """
    if store is None:
        raise ServiceUnavailable("Database not configured")

    try:
        submissions = await run_in_threadpool(store.scan_all)
    except StoreError as e:
        logger.error(
            "Error fetching stats",
            extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            exc_info=True,
        )
        raise InternalError("Failed to fetch statistics")

    stats = build_stats(submissions)
    logger.info(
        "Computed waitlist stats", extra={"extra_fields": {"total": stats.total}}
    )
    return JSONResponse(stats.model_dump(by_alias=True))
