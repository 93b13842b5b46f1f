"""
Delegated spending grant model.

A grant is produced and signed outside this system (the authorizer approves
a capped, time-boxed spend permission for the operator). The engine only
validates its shape and derives transfer calls from it.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from podium.utils.validation import validate_wallet_address

# uint48 max, used by spend permissions as "no end"
MAX_UINT48 = 2**48 - 1


class SpendingGrant(BaseModel):
    """Bounded, revocable, time-windowed spend permission."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    authorizer: str = Field(validation_alias=AliasChoices("authorizer", "account"))
    operator: str = Field(validation_alias=AliasChoices("operator", "spender"))
    asset: str = Field(validation_alias=AliasChoices("asset", "token"))
    chain_scope: int = Field(
        validation_alias=AliasChoices("chain_scope", "chainScope", "chainId"), gt=0
    )
    cap_amount: int = Field(
        validation_alias=AliasChoices("cap_amount", "capAmount", "allowance"), gt=0
    )
    period_days: int = Field(
        validation_alias=AliasChoices("period_days", "periodDays", "periodInDays"), gt=0
    )
    signature: str | None = None
    start: int | None = Field(default=None, ge=0)
    end: int | None = Field(default=None, ge=0)
    salt: int = Field(default=0, ge=0)
    extra_data: str = Field(
        default="0x", validation_alias=AliasChoices("extra_data", "extraData")
    )

    @model_validator(mode="before")
    @classmethod
    def unwrap_permission(cls, data: Any) -> Any:
        """Accept the wallet SDK shape {"permission": {...}, "signature": "0x..."}."""
        if isinstance(data, dict) and isinstance(data.get("permission"), dict):
            merged = dict(data["permission"])
            if data.get("signature") and not merged.get("signature"):
                merged["signature"] = data["signature"]
            return merged
        return data

    @field_validator("authorizer", "operator", "asset")
    @classmethod
    def validate_address(cls, v: str) -> str:
        is_valid, error = validate_wallet_address(v)
        if not is_valid:
            raise ValueError(f"Invalid address {v!r}: {error}")
        return v.strip().lower()

    @field_validator("cap_amount", "start", "end", "salt", mode="before")
    @classmethod
    def parse_big_int(cls, v: Any) -> Any:
        # Wallet SDKs serialise uint256 values as decimal strings
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return v

    @field_validator("signature", "extra_data")
    @classmethod
    def validate_hex(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.startswith("0x"):
            raise ValueError("Hex data must start with 0x")
        try:
            bytes.fromhex(v[2:])
        except ValueError as exc:
            raise ValueError("Invalid hex data") from exc
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "SpendingGrant":
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise ValueError("Grant end must be after its start")
        return self

    @property
    def period_seconds(self) -> int:
        return self.period_days * 86_400

    @property
    def window_start(self) -> int:
        return self.start or 0

    @property
    def window_end(self) -> int:
        return self.end if self.end is not None else MAX_UINT48

    def is_active(self, now: datetime | None = None) -> bool:
        """Whether `now` falls inside the grant's [start, end) window."""
        timestamp = int((now or datetime.now(UTC)).timestamp())
        return self.window_start <= timestamp < self.window_end
