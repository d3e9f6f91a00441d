"""
Submission Store for Waitlist Submissions.

This module handles persistence of waitlist submissions. The pipeline depends
on a store only through three operations:

- find_by_email(email, limit): exact-match query on the normalized email
- insert_unique(submission): atomic insert that fails if the email exists
- scan_all(): read every stored submission

Two implementations are provided:

- DynamoDBSubmissionStore: production store. The table's partition key is
  `email`, so uniqueness is enforced by a conditional PutItem
  (attribute_not_exists) rather than by the preceding read.
- InMemorySubmissionStore: process-local store for local development and tests.

Environment Variables:
    SUBMISSIONS_TABLE_NAME: DynamoDB table name (unset: no store configured)
    STORE_BACKEND: "dynamodb" (default) or "memory"

Note:
    AWS clients are created lazily to avoid import-time dependencies and to
    support local development without AWS credentials.
"""

import threading
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from devcompass.config import settings
from devcompass.config.submission_schemas import WaitlistSubmission
from devcompass.utils.exceptions import DuplicateSubmissionError, StoreError
from devcompass.utils.logger import get_logger, log_performance, mask_email

logger = get_logger(__name__)

# Initialize DynamoDB resource (lazy initialization)
_dynamodb_resource: Optional[Any] = None


def get_dynamodb_resource() -> Any:
    """Get or create the DynamoDB resource using lazy initialization.

    Uses a module-level cache so every submission store shares one resource.
    """
    global _dynamodb_resource
    if _dynamodb_resource is None:
        import boto3

        _dynamodb_resource = boto3.resource("dynamodb")
    return _dynamodb_resource


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_dynamodb(value: Any) -> Any:
    """Convert floats to Decimal, which is the only number type boto3 accepts."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, list):
        return [_to_dynamodb(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_dynamodb(v) for k, v in value.items()}
    return value


def _from_dynamodb(value: Any) -> Any:
    """Convert Decimal values read from DynamoDB back to float."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, list):
        return [_from_dynamodb(v) for v in value]
    if isinstance(value, dict):
        return {k: _from_dynamodb(v) for k, v in value.items()}
    return value


class SubmissionStore:
    """Interface of a durable, query-capable submission store."""

    backend = "unknown"

    def find_by_email(self, email: str, limit: int = 1) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def insert_unique(self, submission: WaitlistSubmission) -> WaitlistSubmission:
        """Insert a submission, assigning its id and createdAt.

        Raises:
            DuplicateSubmissionError: If a submission with the same email exists.
            StoreError: If the store operation fails.
        """
        raise NotImplementedError

    def scan_all(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    @staticmethod
    def _assign_identity(submission: WaitlistSubmission) -> WaitlistSubmission:
        return submission.model_copy(
            update={"id": uuid.uuid4().hex, "created_at": _utc_now_iso()}
        )


class DynamoDBSubmissionStore(SubmissionStore):
    """Submission store backed by a DynamoDB table keyed by email."""

    backend = "dynamodb"

    def __init__(self, table_name: str, resource: Optional[Any] = None):
        self.table_name = table_name
        self._resource = resource

    @property
    def table(self) -> Any:
        resource = self._resource or get_dynamodb_resource()
        return resource.Table(self.table_name)

    def find_by_email(self, email: str, limit: int = 1) -> List[Dict[str, Any]]:
        try:
            with log_performance(
                "find_by_email", table=self.table_name, email=mask_email(email)
            ):
                response = self.table.query(
                    KeyConditionExpression=Key("email").eq(email),
                    Limit=limit,
                )
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to query submissions: {e}") from e
        return [_from_dynamodb(item) for item in response.get("Items", [])]

    def insert_unique(self, submission: WaitlistSubmission) -> WaitlistSubmission:
        stored = self._assign_identity(submission)
        item = _to_dynamodb(stored.to_record())

        try:
            with log_performance(
                "insert_submission", table=self.table_name, submission_id=stored.id
            ):
                self.table.put_item(
                    Item=item,
                    ConditionExpression="attribute_not_exists(email)",
                )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ConditionalCheckFailedException":
                raise DuplicateSubmissionError(
                    f"Email already registered: {mask_email(stored.email)}"
                ) from e
            raise StoreError(f"Failed to insert submission: {e}") from e
        except BotoCoreError as e:
            raise StoreError(f"Failed to insert submission: {e}") from e

        return stored

    def scan_all(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            with log_performance("scan_submissions", table=self.table_name):
                while True:
                    response = self.table.scan(**scan_kwargs)
                    items.extend(response.get("Items", []))
                    last_key = response.get("LastEvaluatedKey")
                    if not last_key:
                        break
                    scan_kwargs["ExclusiveStartKey"] = last_key
        except (BotoCoreError, ClientError) as e:
            raise StoreError(f"Failed to scan submissions: {e}") from e
        return [_from_dynamodb(item) for item in items]


class InMemorySubmissionStore(SubmissionStore):
    """Process-local submission store keyed by email.

    Insertion is atomic under a lock, matching the uniqueness guarantee of the
    DynamoDB store. Contents are lost when the process exits.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, Dict[str, Any]] = {}

    def find_by_email(self, email: str, limit: int = 1) -> List[Dict[str, Any]]:
        with self._lock:
            item = self._items.get(email)
        return [dict(item)][:limit] if item else []

    def insert_unique(self, submission: WaitlistSubmission) -> WaitlistSubmission:
        stored = self._assign_identity(submission)
        with self._lock:
            if stored.email in self._items:
                raise DuplicateSubmissionError(
                    f"Email already registered: {mask_email(stored.email)}"
                )
            self._items[stored.email] = stored.to_record()
        return stored

    def scan_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._items.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def build_submission_store() -> Optional[SubmissionStore]:
    """Create the submission store selected by the environment.

    Returns:
        A store instance, or None if no store is configured. With no store
        the pipeline runs in dev mode (see devcompass.pipeline).
    """
    if settings.STORE_BACKEND == "memory":
        logger.warning(
            "Using in-memory submission store; submissions are not durable",
            extra={"extra_fields": {"store_backend": "memory"}},
        )
        return InMemorySubmissionStore()

    if not settings.SUBMISSIONS_TABLE_NAME:
        logger.warning(
            "Submission store not configured; submissions will not be saved",
            extra={"extra_fields": {"store_backend": settings.STORE_BACKEND}},
        )
        return None

    logger.info(
        "Submission store initialized",
        extra={
            "extra_fields": {
                "store_backend": "dynamodb",
                "table": settings.SUBMISSIONS_TABLE_NAME,
            }
        },
    )
    return DynamoDBSubmissionStore(settings.SUBMISSIONS_TABLE_NAME)
