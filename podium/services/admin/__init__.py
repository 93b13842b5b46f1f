"""
Admin services package.

- authorization: run authorization gate (PIN or shared secret)
- pin_service: PIN verification and rotation
- rate_limiter: failed PIN attempt lockout for callers
- crypto: PIN hashing helpers
"""

from podium.services.admin.authorization import AuthorizationGate
from podium.services.admin.pin_service import AdminPinService
from podium.services.admin.rate_limiter import PinAttemptLimiter

__all__ = ["AdminPinService", "AuthorizationGate", "PinAttemptLimiter"]
