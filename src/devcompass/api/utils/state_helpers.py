"""
State Helper Functions.

FastAPI dependencies that read shared components from app.state. The server
installs them at import time; tests replace them per test.
"""

from typing import Optional

from fastapi import Request

from devcompass.pipeline import SubmissionPipeline
from devcompass.utils.submission_store import SubmissionStore


def get_submission_store(request: Request) -> Optional[SubmissionStore]:
    """Return the configured submission store, or None if there is none."""
    return request.app.state.store


def get_pipeline(request: Request) -> SubmissionPipeline:
    """Build a submission pipeline around the configured store."""
    return SubmissionPipeline(get_submission_store(request))
