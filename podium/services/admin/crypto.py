"""
Admin Service - Cryptographic Utilities.

This module provides utilities for:
- Admin PIN hashing and verification
- Constant-time shared secret comparison
"""

import hmac

import bcrypt

BCRYPT_PREFIX = "$2"


def hash_pin(pin: str) -> str:
    """
    Hash admin PIN using bcrypt.

    Args:
        pin: Plain PIN

    Returns:
        Hashed PIN
    """
    return bcrypt.hashpw(pin.encode(), bcrypt.gensalt()).decode()


def is_hashed(stored: str) -> bool:
    return stored.startswith(BCRYPT_PREFIX)


def verify_pin(plain_pin: str, stored: str) -> bool:
    """
    Verify a PIN against the stored value.

    Stored values may be bcrypt hashes or legacy plain PINs.

    Args:
        plain_pin: PIN supplied by the caller
        stored: Stored PIN or bcrypt hash

    Returns:
        True if match
    """
    if is_hashed(stored):
        try:
            return bcrypt.checkpw(plain_pin.encode(), stored.encode())
        except ValueError:
            return False
    return secrets_equal(plain_pin, stored)


def secrets_equal(provided: str, expected: str) -> bool:
    """Constant-time string comparison."""
    return hmac.compare_digest(provided.encode(), expected.encode())
