"""
Exception handling utilities.

Defines the distribution error taxonomy and categorized exception types
for proper error handling in adapters.
"""

from aiohttp import ClientError
from redis.exceptions import RedisError
from web3.exceptions import Web3Exception


class DistributionError(Exception):
    """Base class for reward distribution failures."""

    code = "distribution_error"


class AuthorizationError(DistributionError):
    """Bad credential or missing configuration. No funds move."""

    code = "unauthorized"


class InvalidInputError(DistributionError):
    """Bad timeframe, malformed request or unusable pool size. No funds move."""

    code = "invalid_input"


class RunInProgressError(DistributionError):
    """Another run for the same timeframe holds the run lock."""

    code = "run_in_progress"


class RunCancelledError(DistributionError):
    """The run was cancelled before funding started."""

    code = "cancelled"


class PoolTransferError(DistributionError):
    """The authorizer to operator funding step failed. Fan-out is not attempted."""

    code = "pool_transfer_failed"


class RecipientTransferError(DistributionError):
    """A single recipient transfer failed. Recorded, never aborts the run."""

    code = "recipient_transfer_failed"


class RecordingError(DistributionError):
    """The distribution record could not be persisted after payouts."""

    code = "recording_failed"


class NotificationError(DistributionError):
    """A winner notification could not be delivered. Always swallowed."""

    code = "notification_failed"


# Exception categories based on handling strategy

# Safe to ignore - best-effort side effects
SAFE_TO_IGNORE = (
    NotificationError,
    ClientError,       # Notification webhook delivery
)

# Must log but can continue - adapter degrades to a failed result
MUST_LOG = (
    RedisError,        # Store unavailable
    Web3Exception,     # Blockchain RPC errors
    OSError,           # RPC transport and timeouts
)


def is_safe_to_ignore(exc: Exception) -> bool:
    """
    Check if exception can be safely ignored.

    Args:
        exc: Exception to check

    Returns:
        True if exception is safe to ignore
    """
    return isinstance(exc, SAFE_TO_IGNORE)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG)
