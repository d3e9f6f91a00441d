"""
DevCompass Waitlist Submission Pipeline.

This module decides whether a waitlist submission is accepted. Each request
runs through the same steps and ends in exactly one outcome:

1. Validate: run every field check in a fixed order; the first failure ends
   the request with a 400 and the store is never touched
2. Normalize: lowercase/trim the email, trim optional strings to None, coerce
   years of experience to a number
3. Duplicate check: look up the normalized email; a hit ends with a 409
4. Persist: insert atomically; a uniqueness violation from the insert (two
   requests racing past step 3) also ends with a 409
5. Respond: 201 with the assigned id

Without a configured store the pipeline runs in dev mode outside production:
validation still runs, steps 3 and 4 are skipped and the normalized
submission is echoed back. In production a missing store is a 503.

Store failures end with a 500. Nothing is retried or rolled back.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

from devcompass.config import settings
from devcompass.config.submission_schemas import WaitlistSubmission
from devcompass.config.validation_constants import SKILL_FIELDS
from devcompass.utils.exceptions import (
    ConflictError,
    DuplicateSubmissionError,
    InternalError,
    ServiceUnavailable,
    ValidationError,
    WaitlistError,
)
from devcompass.utils.logger import get_logger, mask_email
from devcompass.utils.submission_store import SubmissionStore
from devcompass.utils.validators import validate_submission

logger = get_logger(__name__)

TOTAL_STEPS = 4

DUPLICATE_ERROR = "This email has already been registered on the waitlist."
DUPLICATE_MESSAGE = "If you need to update your information, please contact us."
FAILURE_ERROR = "Failed to process submission. Please try again."


@dataclass
class SubmissionResult:
    """Successful pipeline outcome, rendered as the 201 response body."""

    message: str
    id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    success: bool = field(default=True)

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.id is not None:
            body["id"] = self.id
        if self.data is not None:
            body["data"] = self.data
        return body


def pipeline_step(step_name: str, step_number: int):
    """
    Decorator for pipeline steps that provides consistent logging and error mapping.

    WaitlistErrors pass through unchanged. Store failures and any other
    unexpected exception become an InternalError carrying the detail, which
    the API only exposes outside production.

    Args:
        step_name: Human-readable name of the step
        step_number: Step number (1-indexed)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger.debug(f"Step {step_number}/{TOTAL_STEPS}: {step_name}...")
            try:
                return func(*args, **kwargs)
            except WaitlistError:
                raise
            except Exception as e:
                logger.error(
                    f"Step {step_number}/{TOTAL_STEPS}: {step_name} failed",
                    extra={
                        "extra_fields": {
                            "step": step_name,
                            "error": str(e),
                            "error_type": type(e).__name__,
                        }
                    },
                    exc_info=True,
                )
                raise InternalError(FAILURE_ERROR, details=str(e)) from e

        return wrapper

    return decorator


def _trim_or_none(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _submitted_at(value: Any, received_at: datetime) -> str:
    """Keep the client's ISO timestamp when it parses; otherwise use the receive time."""
    if isinstance(value, str) and value.strip():
        try:
            datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            return value.strip()
        except ValueError:
            pass
    return received_at.isoformat()


def normalize_submission(
    payload: Dict[str, Any],
    years: float,
    received_at: Optional[datetime] = None,
) -> WaitlistSubmission:
    """Build the normalized submission from a validated payload.

    Args:
        payload: Payload that passed validate_submission().
        years: Coerced years of experience returned by validation.
        received_at: Server receive time; defaults to now (UTC).
    """
    received_at = received_at or datetime.now(timezone.utc)
    skills = {name: list(payload.get(name) or []) for name in SKILL_FIELDS}

    return WaitlistSubmission(
        email=payload["email"].strip().lower(),
        preferred_name=_trim_or_none(payload.get("preferredName")),
        linkedin_profile=_trim_or_none(payload.get("linkedinProfile")),
        years_of_experience=years,
        employment_status=payload["employmentStatus"],
        cloud_platforms=skills["cloudPlatforms"],
        devops_tools=skills["devopsTools"],
        programming_languages=skills["programmingLanguages"],
        monitoring_tools=skills["monitoringTools"],
        databases=skills["databases"],
        experience_level=payload["experienceLevel"],
        role_focus=payload["roleFocus"],
        location=payload["location"],
        current_salary_range=payload["currentSalaryRange"],
        desired_salary_range=payload.get("desiredSalaryRange") or None,
        submitted_at=_submitted_at(payload.get("submittedAt"), received_at),
    )


class SubmissionPipeline:
    """Runs one waitlist submission from raw payload to stored record.

    Args:
        store: Submission store, or None when no database is configured.
        allow_degraded: Accept submissions without a store (dev mode).
            Defaults to True outside production.
    """

    def __init__(
        self,
        store: Optional[SubmissionStore],
        allow_degraded: Optional[bool] = None,
    ):
        self.store = store
        self.allow_degraded = (
            not settings.IS_PRODUCTION if allow_degraded is None else allow_degraded
        )

    def submit(self, payload: Any) -> SubmissionResult:
        """Validate, normalize, de-duplicate and persist a submission.

        Raises:
            ValidationError: The first validation rule the payload violates.
            ConflictError: The email is already on the waitlist.
            ServiceUnavailable: No store is configured and dev mode is off.
            InternalError: The store failed.
        """
        years = self.validate(payload)
        submission = normalize_submission(payload, years)

        if self.store is None:
            return self._accept_without_store(submission)

        self.check_duplicate(submission.email)
        stored = self.persist(submission)

        logger.info(
            "Submission saved",
            extra={
                "extra_fields": {
                    "submission_id": stored.id,
                    "email": mask_email(stored.email),
                    "role_focus": stored.role_focus,
                    "location": stored.location,
                }
            },
        )
        return SubmissionResult(message="Successfully joined the waitlist", id=stored.id)

    @pipeline_step("validate", 1)
    def validate(self, payload: Any) -> float:
        if not isinstance(payload, dict):
            raise ValidationError("Invalid request body")

        error, years = validate_submission(payload)
        if error:
            logger.info(
                "Submission rejected",
                extra={"extra_fields": {"reason": error}},
            )
            raise ValidationError(error)
        return years

    @pipeline_step("duplicate check", 3)
    def check_duplicate(self, email: str) -> None:
        existing = self.store.find_by_email(email, limit=1)
        if existing:
            logger.warning(
                "Duplicate email attempt",
                extra={"extra_fields": {"email": mask_email(email)}},
            )
            raise ConflictError(DUPLICATE_ERROR, message=DUPLICATE_MESSAGE)

    @pipeline_step("persist", 4)
    def persist(self, submission: WaitlistSubmission) -> WaitlistSubmission:
        try:
            return self.store.insert_unique(submission)
        except DuplicateSubmissionError:
            logger.warning(
                "Duplicate email rejected by store",
                extra={"extra_fields": {"email": mask_email(submission.email)}},
            )
            raise ConflictError(DUPLICATE_ERROR, message=DUPLICATE_MESSAGE)

    def _accept_without_store(self, submission: WaitlistSubmission) -> SubmissionResult:
        if not self.allow_degraded:
            logger.error("Submission received but no database is configured")
            raise ServiceUnavailable("Database not configured")

        record = submission.to_record()
        logger.info(
            "Waitlist submission (database not configured)",
            extra={"extra_fields": {"email": mask_email(submission.email)}},
        )
        return SubmissionResult(
            message="Successfully joined the waitlist (dev mode - not saved to database)",
            data=record,
        )
