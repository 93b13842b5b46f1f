"""
Authorization gate for distribution runs.

A run is authorized either by the administrator PIN (manual) or by the
shared trigger secret (automated). The gate is stateless per call, reads
the store only, and fails closed: missing configuration or an unreachable
store yields REJECTED.
"""

from loguru import logger
from redis.exceptions import RedisError

from podium.models.enums import AuthorizationState, TriggerType
from podium.services.admin.crypto import secrets_equal, verify_pin
from podium.services.interfaces import AdminPinStore
from podium.utils.exceptions import AuthorizationError


class AuthorizationGate:
    """Validates distribution triggers before any funds move."""

    def __init__(
        self,
        pin_store: AdminPinStore | None,
        automated_secret: str | None,
    ) -> None:
        """
        Initialize authorization gate.

        Args:
            pin_store: Store holding the administrator PIN
            automated_secret: Shared secret of the scheduled trigger
        """
        self.pin_store = pin_store
        self.automated_secret = automated_secret

    async def verify(
        self, trigger_type: TriggerType | str, credential: str | None
    ) -> AuthorizationState:
        """
        Check a trigger credential.

        Args:
            trigger_type: manual or automated
            credential: PIN or shared secret

        Returns:
            AuthorizationState.VERIFIED or AuthorizationState.REJECTED
        """
        try:
            trigger_type = TriggerType(trigger_type)
        except ValueError:
            logger.warning(f"Unknown trigger type rejected: {trigger_type}")
            return AuthorizationState.REJECTED

        if not credential:
            return AuthorizationState.REJECTED

        if trigger_type == TriggerType.AUTOMATED:
            return self._verify_automated(credential)
        return await self._verify_manual(credential)

    async def authorize(self, trigger_type: TriggerType | str, credential: str | None) -> None:
        """
        Verify a trigger and raise if it is rejected.

        Raises:
            AuthorizationError: If the credential is rejected
        """
        state = await self.verify(trigger_type, credential)
        if state != AuthorizationState.VERIFIED:
            raise AuthorizationError("Unauthorized")

    def _verify_automated(self, credential: str) -> AuthorizationState:
        if not self.automated_secret:
            logger.error("Automated trigger rejected: no shared secret configured")
            return AuthorizationState.REJECTED

        if secrets_equal(credential, self.automated_secret):
            logger.info("🤖 Automated reward distribution trigger verified")
            return AuthorizationState.VERIFIED

        logger.warning("Automated trigger rejected: secret mismatch")
        return AuthorizationState.REJECTED

    async def _verify_manual(self, credential: str) -> AuthorizationState:
        if self.pin_store is None:
            logger.error("Manual trigger rejected: PIN store not configured")
            return AuthorizationState.REJECTED

        try:
            stored_pin = await self.pin_store.get_pin()
        except (RedisError, OSError, TimeoutError) as e:
            logger.error(f"Manual trigger rejected: PIN store unavailable: {e}")
            return AuthorizationState.REJECTED
        except Exception as e:
            logger.exception(f"Manual trigger rejected: PIN store error: {e}")
            return AuthorizationState.REJECTED

        if not stored_pin:
            logger.error("Manual trigger rejected: no admin PIN has been set")
            return AuthorizationState.REJECTED

        if verify_pin(credential, stored_pin):
            logger.info("👨‍💼 Manual reward distribution trigger verified")
            return AuthorizationState.VERIFIED

        logger.warning("Manual trigger rejected: invalid PIN")
        return AuthorizationState.REJECTED
