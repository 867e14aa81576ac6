"""Tests for the Redis helpers and profile caching."""

from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from httpx import AsyncClient

from healthmate.core.exceptions import ConflictException
from healthmate.core.redis_client import CacheManager, IdempotencyStore, RateLimiter


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("test_key")
    assert result is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"name": "Test", "value": 123}'
    result = cache_manager.get_json("test_key")
    assert result == {"name": "Test", "value": 123}
    mock_redis.get.assert_called_once_with("test_key")


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    test_data = {"name": "Test", "value": 123}

    # Test without TTL
    result = cache_manager.set_json("test_key", test_data)
    assert result is True
    mock_redis.set.assert_called_once_with("test_key", '{"name": "Test", "value": 123}')

    # Test with TTL
    mock_redis.reset_mock()
    result = cache_manager.set_json("test_key", test_data, ttl=300)
    assert result is True
    mock_redis.setex.assert_called_once_with("test_key", 300, '{"name": "Test", "value": 123}')


def test_cache_manager_delete():
    """Test CacheManager delete method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    result = cache_manager.delete("test_key")
    assert result is True
    mock_redis.delete.assert_called_once_with("test_key")


def test_cache_manager_survives_redis_outage():
    """Test every CacheManager call degrades instead of raising."""
    mock_redis = MagicMock()
    for method in ("get", "set", "setex", "delete", "exists"):
        getattr(mock_redis, method).side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get("k") is None
    assert cache_manager.get_json("k") is None
    assert cache_manager.set("k", "v") is False
    assert cache_manager.set_json("k", {"a": 1}, ttl=10) is False
    assert cache_manager.delete("k") is False
    assert cache_manager.exists("k") is False


def test_cache_manager_round_trip(cache_manager: CacheManager, fake_redis: fakeredis.FakeRedis):
    """Test values written with a TTL expire in Redis."""
    cache_manager.set_json("profile:1", {"full_name": "Nandini Rao"}, ttl=60)

    assert cache_manager.exists("profile:1") is True
    assert cache_manager.get_json("profile:1") == {"full_name": "Nandini Rao"}
    assert 0 < fake_redis.ttl("profile:1") <= 60


def test_idempotency_store(cache_manager: CacheManager, fake_redis: fakeredis.FakeRedis):
    """Test responses are replayed per scope, owner and key."""
    store = IdempotencyStore(cache_manager, ttl=120)

    store.remember("booking", "patient-1", "key-1", {"id": "appointment-1"})

    assert store.lookup("booking", "patient-1", "key-1") == {"id": "appointment-1"}
    assert store.lookup("booking", "patient-2", "key-1") is None
    assert store.lookup("slot", "patient-1", "key-1") is None
    assert store.lookup("booking", "patient-1", None) is None
    assert fake_redis.ttl("idempotency:booking:patient-1:key-1") <= 120


def test_idempotency_store_ignores_missing_key(cache_manager: CacheManager):
    store = IdempotencyStore(cache_manager)

    store.remember("booking", "patient-1", None, {"id": "appointment-1"})

    assert store.lookup("booking", "patient-1", "") is None


def test_idempotency_reservation(cache_manager: CacheManager):
    """Test a key is claimed once and replays after the write completes."""
    store = IdempotencyStore(cache_manager, ttl=120)

    assert store.reserve("slots", "doctor-1", "key-1") is None

    # A duplicate while the first write is still running
    with pytest.raises(ConflictException):
        store.reserve("slots", "doctor-1", "key-1")
    assert store.lookup("slots", "doctor-1", "key-1") is None

    store.remember("slots", "doctor-1", "key-1", {"id": "slot-1"})
    assert store.reserve("slots", "doctor-1", "key-1") == {"id": "slot-1"}


def test_idempotency_release(cache_manager: CacheManager):
    store = IdempotencyStore(cache_manager)
    store.reserve("bookings", "patient-1", "key-1")

    store.release("bookings", "patient-1", "key-1")

    assert store.reserve("bookings", "patient-1", "key-1") is None


def test_idempotency_reservation_without_redis():
    mock_redis = MagicMock()
    mock_redis.set.side_effect = redis.ConnectionError("down")
    store = IdempotencyStore(CacheManager(redis_client=mock_redis))

    assert store.reserve("bookings", "patient-1", "key-1") is None


def test_rate_limiter(fake_redis: fakeredis.FakeRedis):
    """Test attempts are counted in a window and reset on success."""
    limiter = RateLimiter(fake_redis)

    for expected in range(1, 4):
        assert limiter.is_limited("login:a@example.com", 3) is False
        assert limiter.record("login:a@example.com", window=60) == expected

    assert limiter.is_limited("login:a@example.com", 3) is True
    assert limiter.is_limited("login:b@example.com", 3) is False
    assert 0 < fake_redis.ttl("login:a@example.com") <= 60

    limiter.reset("login:a@example.com")
    assert limiter.is_limited("login:a@example.com", 3) is False


def test_rate_limiter_fails_open():
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.incr.side_effect = redis.ConnectionError("down")

    limiter = RateLimiter(mock_redis)

    assert limiter.is_limited("login:a@example.com", 1) is False
    assert limiter.record("login:a@example.com") == 0


@pytest.mark.asyncio
async def test_profile_caching(
    client: AsyncClient,
    patient: dict,
    patient_headers: dict,
    fake_redis: fakeredis.FakeRedis,
):
    """Test the caller's profile is cached without its password hash."""
    cache_key = f"profile:{patient['id']}"
    assert fake_redis.get(cache_key) is None

    response = await client.get("/api/v1/profiles/me", headers=patient_headers)
    assert response.status_code == 200

    cached = fake_redis.get(cache_key)
    assert cached is not None
    assert "Nandini Rao" in cached
    assert "password_hash" not in cached

    # Second request is served from the cache
    again = await client.get("/api/v1/profiles/me", headers=patient_headers)
    assert again.json() == response.json()


@pytest.mark.asyncio
async def test_profile_cache_invalidation(
    client: AsyncClient,
    patient: dict,
    patient_headers: dict,
    fake_redis: fakeredis.FakeRedis,
):
    """Test updating the profile drops the stale cache entry."""
    cache_key = f"profile:{patient['id']}"
    await client.get("/api/v1/profiles/me", headers=patient_headers)
    assert fake_redis.exists(cache_key)

    response = await client.patch(
        "/api/v1/profiles/me", json={"full_name": "Nandini R."}, headers=patient_headers
    )
    assert response.status_code == 200
    assert not fake_redis.exists(cache_key)

    fresh = await client.get("/api/v1/profiles/me", headers=patient_headers)
    assert fresh.json()["full_name"] == "Nandini R."


@pytest.mark.asyncio
async def test_deactivation_invalidates_cache(
    client: AsyncClient,
    patient: dict,
    patient_headers: dict,
    admin_headers: dict,
):
    """Test a cached profile does not outlive its deactivation."""
    assert (await client.get("/api/v1/profiles/me", headers=patient_headers)).status_code == 200

    await client.delete(f"/api/v1/admin/users/{patient['id']}", headers=admin_headers)

    response = await client.get("/api/v1/profiles/me", headers=patient_headers)
    assert response.status_code == 403
