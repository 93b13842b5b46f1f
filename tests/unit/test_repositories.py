"""
Tests for Redis repositories.

Covers:
- Leaderboard ranking and profile lookup
- Pool size parsing and updates
- Admin PIN and spending grant storage
"""

import time

import pytest

from podium.repositories import (
    RedisAdminPinRepository,
    RedisLeaderboardRepository,
    RedisSpendingGrantRepository,
)
from podium.utils.exceptions import InvalidInputError


class TestLeaderboardRepository:
    """Test ranking reads."""

    @pytest.mark.asyncio
    async def test_ranked_participants(self, fake_redis, addresses):
        await fake_redis.zadd("leaderboard:week", {"alice": 300, "bob": 500, "carol": 100})
        await fake_redis.hset("player:alice", mapping={"walletAddress": addresses[0], "name": "Alice"})
        await fake_redis.hset(
            "player:bob", mapping={"walletAddress": addresses[1], "name": "Bob", "fid": "42"}
        )
        repo = RedisLeaderboardRepository(fake_redis)

        participants = await repo.get_ranked_participants("week", 2)

        assert [p.display_name for p in participants] == ["Bob", "Alice"]
        assert [p.rank for p in participants] == [1, 2]
        assert participants[0].score == 500
        assert participants[0].fid == 42
        assert participants[1].fid is None

    @pytest.mark.asyncio
    async def test_missing_profile_yields_empty_address(self, fake_redis):
        await fake_redis.zadd("leaderboard:month", {"ghost": 10})
        repo = RedisLeaderboardRepository(fake_redis)

        (participant,) = await repo.get_ranked_participants("month", 10)

        assert participant.payout_address == ""
        assert participant.display_name == "ghost"

    @pytest.mark.asyncio
    async def test_pool_size(self, fake_redis):
        repo = RedisLeaderboardRepository(fake_redis)
        assert await repo.get_configured_pool_size() == 0

        await fake_redis.set("reward:pool_size", "1000000")
        assert await repo.get_configured_pool_size() == 1_000_000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["12.5", "abc", "-1"])
    async def test_bad_pool_size(self, fake_redis, raw):
        await fake_redis.set("reward:pool_size", raw)
        with pytest.raises(InvalidInputError):
            await RedisLeaderboardRepository(fake_redis).get_configured_pool_size()

    @pytest.mark.asyncio
    async def test_set_pool_size(self, fake_redis):
        repo = RedisLeaderboardRepository(fake_redis)

        await repo.set_configured_pool_size(250_000_000)

        assert fake_redis.store["reward:pool_size"] == "250000000"
        assert await repo.get_configured_pool_size() == 250_000_000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-1, 12.5, "100", None, True])
    async def test_set_bad_pool_size(self, fake_redis, amount):
        with pytest.raises(InvalidInputError):
            await RedisLeaderboardRepository(fake_redis).set_configured_pool_size(amount)
        assert "reward:pool_size" not in fake_redis.store


class TestAdminPinRepository:
    """Test PIN storage."""

    @pytest.mark.asyncio
    async def test_get_and_set(self, fake_redis):
        repo = RedisAdminPinRepository(fake_redis)
        assert await repo.get_pin() is None

        await repo.set_pin("$2b$12$hash")
        assert await repo.get_pin() == "$2b$12$hash"
        assert fake_redis.store["admin:pin"] == "$2b$12$hash"


class TestSpendingGrantRepository:
    """Test grant storage."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, fake_redis, spending_grant):
        repo = RedisSpendingGrantRepository(fake_redis)

        await repo.save_grant(spending_grant)
        loaded = await repo.get_grant(spending_grant.authorizer.upper().replace("0X", "0x"))

        assert loaded == spending_grant
        key = f"spend_permission:{spending_grant.authorizer}"
        assert 0 < fake_redis.expiry[key] <= 30 * 86_400

    @pytest.mark.asyncio
    async def test_expired_grant_rejected(self, fake_redis, spending_grant):
        now = int(time.time())
        grant = spending_grant.model_copy(update={"start": now - 200, "end": now - 100})
        with pytest.raises(ValueError):
            await RedisSpendingGrantRepository(fake_redis).save_grant(grant)

    @pytest.mark.asyncio
    async def test_malformed_grant_ignored(self, fake_redis):
        fake_redis.store["spend_permission:0x1111111111111111111111111111111111111111"] = "{}"
        repo = RedisSpendingGrantRepository(fake_redis)
        assert await repo.get_grant("0x1111111111111111111111111111111111111111") is None

    @pytest.mark.asyncio
    async def test_unknown_authorizer(self, fake_redis):
        repo = RedisSpendingGrantRepository(fake_redis)
        assert await repo.get_grant("0x1111111111111111111111111111111111111111") is None
