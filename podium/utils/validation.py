"""Address and amount validation utilities."""

from loguru import logger
from web3 import Web3

from podium.config.constants import ZERO_ADDRESS


def validate_wallet_address(address: str | None) -> tuple[bool, str | None]:
    """
    Validate an EVM wallet address.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if valid
        - (False, error_message) if invalid

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    try:
        int(address[2:], 16)
    except ValueError:
        return False, "Invalid address format"

    try:
        Web3.to_checksum_address(address)
        return True, None
    except (ValueError, TypeError) as e:
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, "Invalid address format"


def is_valid_payout_address(address: str | None) -> bool:
    """
    Check if an address can receive a payout.

    Stricter than validate_wallet_address: the zero address is rejected.

    Args:
        address: Wallet address to check

    Returns:
        True if address can be used for transfers
    """
    is_valid, _ = validate_wallet_address(address)
    if not is_valid:
        return False
    return address.strip().lower() != ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """
    Normalize address to checksum format.

    Args:
        address: Wallet address

    Returns:
        Checksummed address

    Raises:
        ValueError: If invalid address
    """
    is_valid, error = validate_wallet_address(address)
    if not is_valid:
        raise ValueError(error)
    return Web3.to_checksum_address(address.strip())


def same_address(left: str | None, right: str | None) -> bool:
    """Case-insensitive address comparison."""
    if not left or not right:
        return False
    return left.strip().lower() == right.strip().lower()
