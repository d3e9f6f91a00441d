"""
Custom exceptions for the DevCompass waitlist API.

Every error that reaches a client derives from WaitlistError, which carries
the HTTP status and the JSON body to send. Store-level errors are raised by
the submission store and translated by the pipeline.
"""

from typing import Any, Dict, Optional


class WaitlistError(Exception):
    """Base class for errors rendered as JSON responses."""

    status_code = 500

    def __init__(self, error: str, **fields: Any):
        super().__init__(error)
        self.error = error
        self.fields = {k: v for k, v in fields.items() if v is not None}

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.error, **self.fields}


class ValidationError(WaitlistError):
    """Raised for the first validation rule a submission violates."""

    status_code = 400


class ConflictError(WaitlistError):
    """Raised when the normalized email is already on the waitlist."""

    status_code = 409


class PayloadTooLargeError(WaitlistError):
    """Raised when a request body exceeds the size ceiling."""

    status_code = 413


class RateLimited(WaitlistError):
    """Raised when a client exceeds a rate-limit tier."""

    status_code = 429

    def __init__(self, error: str, retry_after: str, retry_after_seconds: int = 0):
        super().__init__(error, retryAfter=retry_after)
        self.retry_after_seconds = retry_after_seconds


class ServiceUnavailable(WaitlistError):
    """Raised when a required dependency (the database) is not configured."""

    status_code = 503


class InternalError(WaitlistError):
    """Raised for unexpected failures; details are only exposed outside production."""

    status_code = 500

    def __init__(self, error: str, details: Optional[str] = None):
        super().__init__(error, details=details)


class StoreError(Exception):
    """Raised by a submission store when an operation fails."""

    pass


class DuplicateSubmissionError(StoreError):
    """Raised by a submission store when the email is already stored."""

    pass
