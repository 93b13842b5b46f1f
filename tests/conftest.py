"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("RPC_URL", "http://localhost:8545")
os.environ.setdefault("AUTOMATED_TRIGGER_SECRET", "test-automated-secret-0123456789")
os.environ.setdefault("FAILED_PIN_DELAY_SECONDS", "0")

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import fnmatch
import time
from unittest.mock import AsyncMock

import pytest

from podium.config.constants import BASE_CHAIN_ID, USDC_BASE_ADDRESS
from podium.models.participant import Participant
from podium.models.spending_grant import SpendingGrant

OPERATOR_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
AUTHORIZER_ADDRESS = "0x1111111111111111111111111111111111111111"


def make_address(index: int) -> str:
    """Deterministic non-zero test address."""
    return "0x" + f"{index + 0xA000:040x}"


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (decode_responses=True)."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.expiry: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            from redis.exceptions import ConnectionError

            raise ConnectionError("Redis unavailable")

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        return self.store.get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        self._check()
        return [self.store.get(key) for key in keys]

    async def set(self, key, value, ex=None, nx=False):
        self._check()
        if nx and key in self.store:
            return None
        self.store[key] = str(value)
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.expiry.pop(key, None)
        return removed

    async def incr(self, key: str) -> int:
        self._check()
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self._check()
        self.expiry[key] = seconds
        return key in self.store

    async def eval(self, script: str, numkeys: int, key: str, token: str, *args) -> int:
        # Lock scripts only: compare-and-pexpire or compare-and-delete
        self._check()
        if self.store.get(key) != token:
            return 0
        if "pexpire" in script:
            self.expiry[key] = int(args[0]) // 1000
            return 1
        return await self.delete(key)

    async def scan_iter(self, match: str | None = None):
        self._check()
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zrevrange(self, key, start, end, withscores=False):
        self._check()
        ranked = sorted(
            self.zsets.get(key, {}).items(), key=lambda item: item[1], reverse=True
        )
        stop = None if end == -1 else end + 1
        sliced = ranked[start:stop]
        if withscores:
            return sliced
        return [member for member, _ in sliced]

    async def hset(self, key: str, mapping: dict[str, str]) -> int:
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    async def hgetall(self, key: str) -> dict[str, str]:
        self._check()
        return dict(self.hashes.get(key, {}))

    async def aclose(self) -> None:
        return None


@pytest.fixture
def fake_redis():
    """In-memory Redis."""
    return FakeRedis()


@pytest.fixture
def operator_address():
    return OPERATOR_ADDRESS


@pytest.fixture
def addresses():
    """Fifteen distinct valid payout addresses."""
    return [make_address(i) for i in range(1, 16)]


@pytest.fixture
def participants(addresses):
    """Twelve ranked participants with descending positive scores."""
    return [
        Participant(
            payout_address=addresses[i],
            rank=i + 1,
            score=1000 - i * 50,
            display_name=f"player{i + 1}",
        )
        for i in range(12)
    ]


@pytest.fixture
def spending_grant():
    """Active grant from the authorizer to the operator, 10k USDC cap."""
    now = int(time.time())
    return SpendingGrant(
        authorizer=AUTHORIZER_ADDRESS,
        operator=OPERATOR_ADDRESS,
        asset=USDC_BASE_ADDRESS,
        chain_scope=BASE_CHAIN_ID,
        cap_amount=10_000_000_000,
        period_days=7,
        start=now - 3600,
        end=now + 30 * 86_400,
        signature="0x" + "ab" * 65,
    )


@pytest.fixture
def mock_submitter():
    """Transfer submitter that always succeeds."""
    from podium.models.transfer import TransferResult

    submitter = AsyncMock()
    submitter.submit = AsyncMock(
        side_effect=lambda from_address, to_address, amount, memo=None: TransferResult(
            success=True, reference="0x" + to_address[-8:].rjust(64, "0")
        )
    )
    return submitter
