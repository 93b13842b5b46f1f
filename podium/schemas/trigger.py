"""
Trigger request schema.

Distribution requests are a tagged union over `triggerType`: a manual run
carries the administrator PIN, an automated run carries the shared trigger
secret. Anything that does not match is rejected before any side effect.
"""

from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from podium.models.enums import Timeframe, TriggerType
from podium.models.spending_grant import SpendingGrant
from podium.utils.exceptions import InvalidInputError


class _TriggerBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    timeframe: Timeframe
    spending_grant: SpendingGrant | None = Field(
        default=None,
        validation_alias=AliasChoices("spending_grant", "spendingGrant", "spendPermission"),
    )

    @property
    def trigger(self) -> TriggerType:
        return TriggerType(self.trigger_type)

    @field_validator("credential", mode="before", check_fields=False)
    @classmethod
    def coerce_credential(cls, v: Any) -> Any:
        # PINs sometimes arrive as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ManualTriggerRequest(_TriggerBase):
    """Run started by an administrator with the PIN."""

    trigger_type: Literal["manual"] = Field(alias="triggerType")
    credential: str = Field(
        validation_alias=AliasChoices("credential", "adminPin", "pin"), max_length=64
    )


class AutomatedTriggerRequest(_TriggerBase):
    """Run started by the scheduled trigger with the shared secret."""

    trigger_type: Literal["automated"] = Field(alias="triggerType")
    credential: str = Field(
        validation_alias=AliasChoices("credential", "automatedSecret"), max_length=256
    )


TriggerRequest = Annotated[
    ManualTriggerRequest | AutomatedTriggerRequest,
    Field(discriminator="trigger_type"),
]

_trigger_adapter: TypeAdapter[TriggerRequest] = TypeAdapter(TriggerRequest)


def parse_trigger_request(payload: Any) -> ManualTriggerRequest | AutomatedTriggerRequest:
    """
    Validate a raw trigger payload.

    Args:
        payload: Decoded JSON body

    Returns:
        ManualTriggerRequest or AutomatedTriggerRequest

    Raises:
        InvalidInputError: If the payload does not match either variant
    """
    if not isinstance(payload, dict):
        raise InvalidInputError("Request body must be a JSON object")

    data = dict(payload)
    if "triggerType" not in data and "trigger_type" in data:
        data["triggerType"] = data.pop("trigger_type")

    try:
        return _trigger_adapter.validate_python(data)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "body"
            for error in e.errors()
        )
        raise InvalidInputError(f"Invalid distribution request ({fields})") from e
