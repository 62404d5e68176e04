"""Tests for the download rate limit and the per-contract export lock"""

import pytest
import redis
from fastapi import HTTPException

from contractai.rate_limiter import GenerationGuard, check_rate_limit


class BrokenRedis:
    def set(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")

    def get(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")

    def ttl(self, *args, **kwargs):
        raise redis.ConnectionError("connection refused")


def test_rate_limit_counts_within_window():
    results = [check_rate_limit("test:1.2.3.4", 3, 60, None) for _ in range(4)]

    assert [allowed for allowed, _, _ in results] == [True, True, True, False]
    assert results[2][1] == 3
    assert 0 < results[3][2] <= 60


def test_rate_limit_keys_are_independent():
    for _ in range(3):
        check_rate_limit("test:a", 3, 60, None)

    allowed, count, _ = check_rate_limit("test:b", 3, 60, None)
    assert allowed
    assert count == 1


def test_rate_limit_fails_open_when_redis_breaks():
    allowed, count, _ = check_rate_limit("test:broken", 5, 60, BrokenRedis())
    assert allowed
    assert count == 1


@pytest.fixture
def local_guard():
    return GenerationGuard(ttl_seconds=60, client_factory=lambda: None)


def test_second_acquire_is_refused(local_guard):
    token = local_guard.acquire("contract_1")

    assert token is not None
    assert local_guard.acquire("contract_1") is None
    assert local_guard.acquire("contract_2") is not None


def test_release_frees_the_contract(local_guard):
    token = local_guard.acquire("contract_1")
    local_guard.release("contract_1", token)

    assert local_guard.acquire("contract_1") is not None


def test_release_with_stale_token_keeps_lock(local_guard):
    local_guard.acquire("contract_1")
    local_guard.release("contract_1", "not-the-holder")

    assert local_guard.acquire("contract_1") is None


def test_expired_lock_can_be_taken_over():
    guard = GenerationGuard(ttl_seconds=0, client_factory=lambda: None)
    assert guard.acquire("contract_1") is not None
    assert guard.acquire("contract_1") is not None


def test_hold_raises_conflict_while_held(local_guard):
    with local_guard.hold("contract_1"):
        with pytest.raises(HTTPException) as excinfo:
            with local_guard.hold("contract_1"):
                pass
        assert excinfo.value.status_code == 409

    # Released on exit
    with local_guard.hold("contract_1"):
        pass


def test_hold_releases_after_errors(local_guard):
    with pytest.raises(RuntimeError):
        with local_guard.hold("contract_1"):
            raise RuntimeError("render failed")

    assert local_guard.acquire("contract_1") is not None


def test_guard_falls_back_to_local_lock_when_redis_breaks():
    guard = GenerationGuard(ttl_seconds=60, client_factory=BrokenRedis)

    assert guard.acquire("contract_1") is not None
    assert guard.acquire("contract_1") is None
