"""
External collaborator interfaces.

The engine depends only on these protocols; concrete Redis, Web3 and
webhook adapters live in podium.repositories, podium.services.blockchain
and podium.services.notification.
"""

from collections.abc import Sequence
from typing import Protocol

from podium.models.distribution import DistributionRecord
from podium.models.participant import Participant
from podium.models.spending_grant import SpendingGrant
from podium.models.transfer import CallExecutionResult, PreparedCall, TransferResult


class RankingStore(Protocol):
    async def get_ranked_participants(
        self, timeframe: str, limit: int
    ) -> list[Participant]: ...


class PoolSizeSource(Protocol):
    async def get_configured_pool_size(self) -> int: ...


class PoolConfigStore(PoolSizeSource, Protocol):
    async def set_configured_pool_size(self, amount: int) -> None: ...


class TransferSubmitter(Protocol):
    async def submit(
        self,
        from_address: str,
        to_address: str,
        amount: int,
        memo: str | None = None,
    ) -> TransferResult: ...


class BalanceReader(Protocol):
    async def get_balance(self, address: str) -> int: ...


class GrantCallPreparer(Protocol):
    async def prepare_calls(
        self, grant: SpendingGrant, amount: int
    ) -> Sequence[PreparedCall]: ...


class CallExecutor(Protocol):
    async def execute(self, calls: Sequence[PreparedCall]) -> CallExecutionResult: ...


class HistoryStore(Protocol):
    async def put(self, record: DistributionRecord, ttl_seconds: int) -> None: ...

    async def query(self, timeframe: str, limit: int) -> list[DistributionRecord]: ...


class Notifier(Protocol):
    async def notify(self, address: str, message: str) -> None: ...


class AdminPinStore(Protocol):
    async def get_pin(self) -> str | None: ...

    async def set_pin(self, value: str) -> None: ...


class GrantStore(Protocol):
    async def get_grant(self, authorizer: str) -> SpendingGrant | None: ...

    async def save_grant(self, grant: SpendingGrant) -> None: ...
