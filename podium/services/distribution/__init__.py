"""
Distribution services package.

- funding: authorizer to operator transfer through a spending grant
- fanout: operator to recipient payouts
- recorder: audit records and history
- orchestrator: run state machine
"""

from podium.services.distribution.fanout import PayoutFanOut
from podium.services.distribution.funding import FundingPoolTransfer
from podium.services.distribution.orchestrator import (
    DistributionConfig,
    DistributionOrchestrator,
)
from podium.services.distribution.recorder import DistributionRecorder

__all__ = [
    "DistributionConfig",
    "DistributionOrchestrator",
    "DistributionRecorder",
    "FundingPoolTransfer",
    "PayoutFanOut",
]
