"""
Admin PIN management.

Verifies and rotates the administrator PIN used for manual distribution
runs. New PINs are stored bcrypt-hashed.
"""

import re

from loguru import logger

from podium.config.constants import ADMIN_PIN_PATTERN
from podium.models.enums import AuthorizationState, TriggerType
from podium.services.admin.authorization import AuthorizationGate
from podium.services.admin.crypto import hash_pin
from podium.services.interfaces import AdminPinStore
from podium.utils.exceptions import AuthorizationError, InvalidInputError

_PIN_RE = re.compile(ADMIN_PIN_PATTERN)


class AdminPinService:
    """Administrator PIN verification and rotation."""

    def __init__(self, pin_store: AdminPinStore, gate: AuthorizationGate) -> None:
        self.pin_store = pin_store
        self.gate = gate

    async def verify_pin(self, pin: str | None) -> bool:
        state = await self.gate.verify(TriggerType.MANUAL, pin)
        return state == AuthorizationState.VERIFIED

    async def update_pin(self, current_pin: str | None, new_pin: str | None) -> None:
        """
        Replace the admin PIN.

        Args:
            current_pin: PIN currently in effect
            new_pin: Replacement PIN, 4-6 digits

        Raises:
            InvalidInputError: If either PIN is missing or the new PIN is malformed
            AuthorizationError: If the current PIN is wrong
        """
        if not current_pin or not new_pin:
            raise InvalidInputError("Current PIN and new PIN are required")

        if not await self.verify_pin(current_pin):
            raise AuthorizationError("Current PIN is incorrect")

        if not _PIN_RE.match(new_pin):
            raise InvalidInputError("New PIN must be 4-6 digits")

        await self.pin_store.set_pin(hash_pin(new_pin))
        logger.info("Admin PIN updated")
