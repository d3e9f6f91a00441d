"""
Rate Limiting Utility for API Endpoints.

This module provides per-client-IP rate limiting with two independent tiers:

- Submission tier: guards POST /api/waitlist (15 minutes, 5 requests in
  production, 100 elsewhere)
- General tier: guards read-only endpoints (1 minute, 20 requests)

Counting is delegated to a CounterStore so the backend can be swapped without
touching the middleware:

- InMemoryCounterStore: sliding-window log per key, guarded by a lock.
  Accurate within one process only.
- DynamoDBCounterStore: fixed-window counter per key using an atomic
  conditional UpdateItem, shared across processes.

Environment Variables:
    RATE_LIMIT_ENABLED: Enable/disable rate limiting (default: "true")
    RATE_LIMIT_BACKEND: "memory" (default) or "dynamodb"
    RATE_LIMIT_TABLE_NAME: DynamoDB table for counters (default: "devcompass-rate-limits")
    TRUSTED_PROXY_HOPS: Proxies whose X-Forwarded-For entries are trusted (default: 0)
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from devcompass.config import settings
from devcompass.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limits of one rate-limit tier."""

    name: str
    window_seconds: int
    max_requests: int
    message: str
    retry_after: str


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against a policy.

    Attributes:
        allowed: False if the request exceeds the limit.
        limit: The policy's request ceiling.
        remaining: Requests left in the current window.
        reset_at: Unix timestamp when the oldest counted request expires.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int

    @property
    def retry_after_seconds(self) -> int:
        return max(0, self.reset_at - int(time.time()))


def submission_policy(production: bool = settings.IS_PRODUCTION) -> RateLimitPolicy:
    """Strict tier for the waitlist write path."""
    return RateLimitPolicy(
        name="submission",
        window_seconds=settings.SUBMISSION_WINDOW_SECONDS,
        max_requests=5 if production else 100,
        message="Too many requests from this IP, please try again after 15 minutes.",
        retry_after="15 minutes",
    )


def general_policy() -> RateLimitPolicy:
    """Lenient tier for health, stats and schema endpoints."""
    return RateLimitPolicy(
        name="general",
        window_seconds=settings.GENERAL_WINDOW_SECONDS,
        max_requests=settings.GENERAL_MAX_REQUESTS,
        message="Too many requests, please slow down.",
        retry_after="1 minute",
    )


class CounterStore:
    """Counts requests per key within a time window."""

    def hit(self, key: str, window_seconds: int, limit: int) -> RateLimitDecision:
        """Count one request for key and decide whether it is allowed."""
        raise NotImplementedError

    def reset(self) -> None:
        """Forget all counters."""
        raise NotImplementedError


class InMemoryCounterStore(CounterStore):
    """Sliding-window log of request timestamps per key.

    Only allowed requests are recorded, so a client that keeps hammering a
    limited endpoint regains access as its earlier requests age out. Keys
    whose window has fully expired are dropped by a sweep that runs at most
    once per sweep_interval seconds.
    """

    def __init__(self, clock=time.time, sweep_interval: int = 60):
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._lock = threading.Lock()
        self._hits: Dict[str, Deque[float]] = {}
        self._windows: Dict[str, int] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        expired = [
            key
            for key, hits in self._hits.items()
            if not hits or hits[-1] <= now - self._windows[key]
        ]
        for key in expired:
            del self._hits[key]
            del self._windows[key]
        self._last_sweep = now

    def hit(self, key: str, window_seconds: int, limit: int) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - window_seconds

        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)

            hits = self._hits.setdefault(key, deque())
            self._windows[key] = window_seconds
            while hits and hits[0] <= cutoff:
                hits.popleft()

            if len(hits) >= limit:
                reset_at = int(hits[0] + window_seconds)
                return RateLimitDecision(False, limit, 0, reset_at)

            hits.append(now)
            reset_at = int(hits[0] + window_seconds)
            return RateLimitDecision(True, limit, limit - len(hits), reset_at)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._windows.clear()


def _is_condition_failure(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    return code == "ConditionalCheckFailedException"


class DynamoDBCounterStore(CounterStore):
    """Fixed-window counters stored in DynamoDB.

    Each key maps to one item holding the current window start and count.
    Increments use a conditional UpdateItem so concurrent requests from any
    process cannot push the count past the limit. Items carry a TTL attribute
    for automatic cleanup.

    On DynamoDB errors the request is allowed (fail open) and the error logged.
    """

    def __init__(self, table_name: str, client: Optional[Any] = None):
        self.table_name = table_name
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("dynamodb")
        return self._client

    def hit(self, key: str, window_seconds: int, limit: int) -> RateLimitDecision:
        current_time = int(time.time())
        window_start = current_time - (current_time % window_seconds)
        reset_at = window_start + window_seconds
        ttl = reset_at + 300  # 5 min buffer for cleanup

        try:
            # Two rounds: another process may open the window between our update and put
            for _ in range(2):
                count = self._increment(key, window_start, limit, ttl)
                if count is not None:
                    return RateLimitDecision(
                        True, limit, max(0, limit - count), reset_at
                    )
                if self._open_window(key, window_start, ttl):
                    return RateLimitDecision(True, limit, limit - 1, reset_at)
        except (BotoCoreError, ClientError) as e:
            return self._fail_open(key, limit, reset_at, e)

        # Same window and the count is already at the limit
        return RateLimitDecision(False, limit, 0, reset_at)

    def _increment(
        self, key: str, window_start: int, limit: int, ttl: int
    ) -> Optional[int]:
        """Atomically increment the counter if it belongs to this window and is under the limit.

        Returns:
            The new count, or None if the condition failed (limit reached, or
            the item is missing or from an older window).
        """
        try:
            response = self.client.update_item(
                TableName=self.table_name,
                Key={"rate_key": {"S": key}},
                UpdateExpression="ADD #count :one SET #ttl = :ttl",
                ConditionExpression="#window = :window AND #count < :limit",
                ExpressionAttributeNames={
                    "#count": "count",
                    "#window": "window_start",
                    "#ttl": "ttl",
                },
                ExpressionAttributeValues={
                    ":one": {"N": "1"},
                    ":window": {"N": str(window_start)},
                    ":limit": {"N": str(limit)},
                    ":ttl": {"N": str(ttl)},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return None
            raise
        return int(response["Attributes"]["count"]["N"])

    def _open_window(self, key: str, window_start: int, ttl: int) -> bool:
        """Start a new window with a count of one, unless this window already exists."""
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item={
                    "rate_key": {"S": key},
                    "count": {"N": "1"},
                    "window_start": {"N": str(window_start)},
                    "ttl": {"N": str(ttl)},
                },
                ConditionExpression="attribute_not_exists(rate_key) OR #window <> :window",
                ExpressionAttributeNames={"#window": "window_start"},
                ExpressionAttributeValues={":window": {"N": str(window_start)}},
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return False
            raise
        return True

    def reset(self) -> None:
        # Counters expire through the table's TTL
        pass

    def _fail_open(
        self, key: str, limit: int, reset_at: int, error: Exception
    ) -> RateLimitDecision:
        logger.error(
            "Error checking rate limit in DynamoDB",
            extra={
                "extra_fields": {
                    "rate_key": key,
                    "error": str(error),
                    "error_type": type(error).__name__,
                }
            },
        )
        return RateLimitDecision(True, limit, limit, reset_at)


class RateLimiter:
    """Two-tier rate limiter keyed by client IP."""

    def __init__(
        self,
        submission: Optional[RateLimitPolicy] = None,
        general: Optional[RateLimitPolicy] = None,
        store: Optional[CounterStore] = None,
        enabled: bool = True,
    ):
        self.policies = {
            "submission": submission or submission_policy(),
            "general": general or general_policy(),
        }
        self.store = store or InMemoryCounterStore()
        self.enabled = enabled

    def check(self, tier: str, client_ip: str) -> Optional[RateLimitDecision]:
        """Count a request against a tier.

        Returns:
            The decision, or None when rate limiting is disabled.

        Raises:
            KeyError: If tier is not "submission" or "general".
        """
        policy = self.policies[tier]
        if not self.enabled:
            return None

        decision = self.store.hit(
            f"{policy.name}:{client_ip}", policy.window_seconds, policy.max_requests
        )
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "extra_fields": {
                        "client_ip": client_ip,
                        "tier": policy.name,
                        "rate_limit": policy.max_requests,
                        "reset_at": decision.reset_at,
                    }
                },
            )
        return decision

    def reset(self) -> None:
        self.store.reset()


def build_rate_limiter() -> RateLimiter:
    """Create the rate limiter selected by the environment."""
    if settings.RATE_LIMIT_BACKEND == "dynamodb":
        store: CounterStore = DynamoDBCounterStore(settings.RATE_LIMIT_TABLE_NAME)
    else:
        store = InMemoryCounterStore()
    return RateLimiter(store=store, enabled=settings.RATE_LIMIT_ENABLED)


def get_client_ip(request, trusted_hops: Optional[int] = None) -> str:
    """Extract the client address used to key rate-limit counters.

    By default this is the peer address of the connection. On Lambda, Mangum
    fills it from the API Gateway request context, which clients cannot set.
    X-Forwarded-For is consulted only when TRUSTED_PROXY_HOPS is set: each
    trusted proxy appends the address it saw, so the client is the entry
    that many hops from the right. Entries further left are client-supplied
    and ignored.

    Args:
        request: FastAPI Request object.
        trusted_hops: Number of reverse proxies in front of the app.
            Defaults to settings.TRUSTED_PROXY_HOPS.

    Returns:
        str: Client IP address as string.
    """
    if trusted_hops is None:
        trusted_hops = settings.TRUSTED_PROXY_HOPS

    if trusted_hops > 0:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        hops = [ip.strip() for ip in forwarded_for.split(",") if ip.strip()]
        if hops:
            # Fewer entries than proxies: every entry was appended by a proxy
            return hops[-trusted_hops] if len(hops) >= trusted_hops else hops[0]

    if request.client:
        return request.client.host

    return "unknown"
