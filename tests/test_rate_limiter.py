# ---------- TESTS FOR RATE LIMITER ----------

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from devcompass.utils.rate_limiter import (
    DynamoDBCounterStore,
    InMemoryCounterStore,
    RateLimiter,
    build_rate_limiter,
    general_policy,
    get_client_ip,
    submission_policy,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "UpdateItem")


# ----- Policies -----


def test_submission_policy_production_and_development():
    production = submission_policy(production=True)
    development = submission_policy(production=False)

    assert production.window_seconds == 900
    assert production.max_requests == 5
    assert development.max_requests == 100
    assert production.retry_after == "15 minutes"


def test_general_policy():
    policy = general_policy()
    assert policy.window_seconds == 60
    assert policy.max_requests == 20
    assert policy.message == "Too many requests, please slow down."


# ----- In-memory sliding window -----


def test_memory_store_blocks_after_limit():
    clock = FakeClock()
    store = InMemoryCounterStore(clock=clock)

    decisions = [store.hit("ip", 900, 5) for _ in range(6)]

    assert [d.allowed for d in decisions] == [True] * 5 + [False]
    assert [d.remaining for d in decisions] == [4, 3, 2, 1, 0, 0]
    assert decisions[-1].reset_at == int(clock.now + 900)


def test_memory_store_window_slides():
    clock = FakeClock()
    store = InMemoryCounterStore(clock=clock)

    store.hit("ip", 60, 2)
    clock.now += 30
    store.hit("ip", 60, 2)
    assert not store.hit("ip", 60, 2).allowed

    # The first request ages out, freeing one slot
    clock.now += 31
    assert store.hit("ip", 60, 2).allowed
    assert not store.hit("ip", 60, 2).allowed


def test_memory_store_keys_are_independent():
    store = InMemoryCounterStore()
    assert store.hit("a", 60, 1).allowed
    assert not store.hit("a", 60, 1).allowed
    assert store.hit("b", 60, 1).allowed


def test_memory_store_concurrent_hits_never_exceed_limit():
    store = InMemoryCounterStore()
    results = []

    def worker():
        for _ in range(50):
            results.append(store.hit("ip", 60, 100).allowed)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 100


def test_memory_store_drops_expired_keys():
    clock = FakeClock()
    store = InMemoryCounterStore(clock=clock, sweep_interval=60)

    for i in range(1000):
        store.hit(f"general:10.0.{i // 256}.{i % 256}", 60, 20)
    assert len(store._hits) == 1000

    clock.now += 61
    store.hit("general:203.0.113.1", 60, 20)

    assert list(store._hits) == ["general:203.0.113.1"]


def test_memory_store_sweep_keeps_live_windows():
    clock = FakeClock()
    store = InMemoryCounterStore(clock=clock, sweep_interval=60)

    for _ in range(5):
        store.hit("submission:ip", 900, 5)
    clock.now += 61
    store.hit("general:other", 60, 20)

    # The submission window is still open, so the client stays blocked
    assert not store.hit("submission:ip", 900, 5).allowed


def test_memory_store_reset():
    store = InMemoryCounterStore()
    store.hit("ip", 60, 1)
    store.reset()
    assert store.hit("ip", 60, 1).allowed


# ----- RateLimiter -----


def test_rate_limiter_tiers_are_independent():
    limiter = RateLimiter(submission=submission_policy(production=True))

    for _ in range(5):
        assert limiter.check("submission", "1.2.3.4").allowed
    assert not limiter.check("submission", "1.2.3.4").allowed

    # General tier has its own counter
    assert limiter.check("general", "1.2.3.4").allowed
    # Other addresses are unaffected
    assert limiter.check("submission", "5.6.7.8").allowed


def test_rate_limiter_disabled():
    limiter = RateLimiter(enabled=False)
    assert limiter.check("submission", "1.2.3.4") is None


def test_rate_limiter_unknown_tier():
    with pytest.raises(KeyError):
        RateLimiter().check("admin", "1.2.3.4")


@patch("devcompass.utils.rate_limiter.settings")
def test_build_rate_limiter_dynamodb(mock_settings):
    mock_settings.RATE_LIMIT_BACKEND = "dynamodb"
    mock_settings.RATE_LIMIT_TABLE_NAME = "limits"
    mock_settings.RATE_LIMIT_ENABLED = True

    limiter = build_rate_limiter()

    assert isinstance(limiter.store, DynamoDBCounterStore)
    assert limiter.store.table_name == "limits"


# ----- DynamoDB fixed window -----


def test_dynamodb_store_increments_existing_window():
    client = MagicMock()
    client.update_item.return_value = {"Attributes": {"count": {"N": "3"}}}
    store = DynamoDBCounterStore("limits", client=client)

    decision = store.hit("submission:1.2.3.4", 900, 5)

    assert decision.allowed
    assert decision.remaining == 2
    kwargs = client.update_item.call_args[1]
    assert kwargs["Key"] == {"rate_key": {"S": "submission:1.2.3.4"}}
    assert kwargs["ExpressionAttributeValues"][":limit"] == {"N": "5"}
    client.put_item.assert_not_called()


def test_dynamodb_store_opens_new_window():
    client = MagicMock()
    client.update_item.side_effect = _client_error("ConditionalCheckFailedException")
    store = DynamoDBCounterStore("limits", client=client)

    decision = store.hit("general:1.2.3.4", 60, 20)

    assert decision.allowed
    assert decision.remaining == 19
    item = client.put_item.call_args[1]["Item"]
    assert item["count"] == {"N": "1"}


def test_dynamodb_store_denies_when_window_full():
    client = MagicMock()
    client.update_item.side_effect = _client_error("ConditionalCheckFailedException")
    client.put_item.side_effect = _client_error("ConditionalCheckFailedException")
    store = DynamoDBCounterStore("limits", client=client)

    decision = store.hit("submission:1.2.3.4", 900, 5)

    assert not decision.allowed
    assert decision.remaining == 0


def test_dynamodb_store_fails_open():
    client = MagicMock()
    client.update_item.side_effect = _client_error("InternalServerError")
    store = DynamoDBCounterStore("limits", client=client)

    assert store.hit("submission:1.2.3.4", 900, 5).allowed


# ----- Client IP -----


def _request(headers=None, host="10.0.0.1"):
    return SimpleNamespace(
        headers=headers or {},
        client=SimpleNamespace(host=host) if host else None,
    )


def test_get_client_ip_ignores_forwarded_headers_by_default():
    request = _request({"X-Forwarded-For": "203.0.113.5", "X-Real-IP": "198.51.100.7"})
    assert get_client_ip(request, trusted_hops=0) == "10.0.0.1"
    assert get_client_ip(_request(host=None), trusted_hops=0) == "unknown"


def test_get_client_ip_behind_trusted_proxy():
    # The client prepended a fake entry; the proxy appended the real peer
    request = _request({"X-Forwarded-For": "1.1.1.1, 203.0.113.5"})
    assert get_client_ip(request, trusted_hops=1) == "203.0.113.5"

    two_proxies = _request({"X-Forwarded-For": "1.1.1.1, 203.0.113.5, 10.0.0.9"})
    assert get_client_ip(two_proxies, trusted_hops=2) == "203.0.113.5"

    # Fewer entries than proxies
    assert get_client_ip(_request({"X-Forwarded-For": "203.0.113.5"}), trusted_hops=2) == "203.0.113.5"
    # No header falls back to the peer
    assert get_client_ip(_request(), trusted_hops=1) == "10.0.0.1"


@patch("devcompass.utils.rate_limiter.settings")
def test_get_client_ip_reads_trusted_hops_setting(mock_settings):
    mock_settings.TRUSTED_PROXY_HOPS = 1
    request = _request({"X-Forwarded-For": "1.1.1.1, 203.0.113.5"})
    assert get_client_ip(request) == "203.0.113.5"
