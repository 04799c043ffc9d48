"""
Tests for the rate limiter's in-memory fallback and Redis path.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from alumni.core import rate_limit


@pytest.mark.asyncio
async def test_memory_fallback_enforces_limit():
    with patch("alumni.core.rate_limit.redis_module.redis_client", None):
        results = [await rate_limit.check_rate_limit("test:key", 3, 60) for _ in range(4)]

    assert results == [True, True, True, False]


@pytest.mark.asyncio
async def test_keys_are_independent():
    with patch("alumni.core.rate_limit.redis_module.redis_client", None):
        assert await rate_limit.check_rate_limit("test:a", 1, 60) is True
        assert await rate_limit.check_rate_limit("test:a", 1, 60) is False
        assert await rate_limit.check_rate_limit("test:b", 1, 60) is True


@pytest.mark.asyncio
async def test_redis_count_decides():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[0, 5, 1, True])
    client = MagicMock()
    client.pipeline.return_value = pipe

    with patch("alumni.core.rate_limit.redis_module.redis_client", client):
        assert await rate_limit.check_rate_limit("test:redis", 5, 60) is False

    pipe.execute.return_value = [0, 4, 1, True]
    with patch("alumni.core.rate_limit.redis_module.redis_client", client):
        assert await rate_limit.check_rate_limit("test:redis", 5, 60) is True


@pytest.mark.asyncio
async def test_redis_failure_falls_back_to_memory():
    pipe = MagicMock()
    pipe.execute = AsyncMock(side_effect=ConnectionError("down"))
    client = MagicMock()
    client.pipeline.return_value = pipe

    with patch("alumni.core.rate_limit.redis_module.redis_client", client):
        assert await rate_limit.check_rate_limit("test:fallback", 1, 60) is True
        assert await rate_limit.check_rate_limit("test:fallback", 1, 60) is False


@pytest.mark.asyncio
async def test_memory_fallback_drops_expired_keys():
    with (
        patch("alumni.core.rate_limit.redis_module.redis_client", None),
        patch("alumni.core.rate_limit.time.time", return_value=1000.0) as mock_time,
    ):
        assert await rate_limit.check_rate_limit("test:old", 1, 60) is True
        assert "test:old" in rate_limit._memory_store

        mock_time.return_value = 1061.0
        assert await rate_limit.check_rate_limit("test:new", 1, 60) is True

    assert "test:old" not in rate_limit._memory_store
    assert "test:old" not in rate_limit._memory_expiry
    assert "test:new" in rate_limit._memory_store


@pytest.mark.asyncio
async def test_memory_fallback_window_slides():
    with (
        patch("alumni.core.rate_limit.redis_module.redis_client", None),
        patch("alumni.core.rate_limit.time.time", return_value=1000.0) as mock_time,
    ):
        assert await rate_limit.check_rate_limit("test:slide", 1, 60) is True
        assert await rate_limit.check_rate_limit("test:slide", 1, 60) is False

        mock_time.return_value = 1060.5
        assert await rate_limit.check_rate_limit("test:slide", 1, 60) is True
