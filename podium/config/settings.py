"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from podium.config.constants import (
    BASE_CHAIN_ID,
    DUST_THRESHOLD_FRACTION_DIVISOR,
    HISTORY_RETENTION_DAYS,
    SPEND_PERMISSION_MANAGER_ADDRESS,
    USDC_BASE_ADDRESS,
    USDC_DECIMALS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Podium"

    # Redis (admin PIN, leaderboard, history, run locks, dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Chain
    rpc_url: str = "https://mainnet.base.org"
    chain_id: int = BASE_CHAIN_ID
    asset_address: str = USDC_BASE_ADDRESS
    asset_symbol: str = "USDC"
    asset_decimals: int = Field(default=USDC_DECIMALS, ge=0, le=36)
    spend_permission_manager_address: str = SPEND_PERMISSION_MANAGER_ADDRESS
    receipt_timeout_seconds: int = Field(
        default=120, gt=0, description="How long to wait for a transaction receipt"
    )

    # Operator (reward distributor) wallet
    operator_address: str | None = None
    operator_private_key: str | None = None

    # Authorizer (admin) wallet whose spend permission funds the pool
    authorizer_address: str | None = None

    # Automated trigger shared secret
    automated_trigger_secret: str | None = None

    # Distribution policy
    max_concurrent_transfers: int = Field(
        default=3, ge=1, le=20, description="Fan-out worker pool size"
    )
    dust_threshold_units: int | None = Field(
        default=None,
        ge=1,
        description="Minimum payout in smallest units (default 0.0001 asset unit)",
    )
    leaderboard_fetch_limit: int = Field(
        default=15, ge=1, le=100, description="Participants read per run"
    )
    pre_funding_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Deadline for the phase before funding"
    )
    run_lock_ttl_seconds: int = Field(
        default=900, gt=0, description="Per-timeframe run lock expiry"
    )
    history_retention_days: int = Field(default=HISTORY_RETENTION_DAYS, gt=0)

    # Admin PIN lockout (enforced by the HTTP layer)
    admin_pin_max_attempts: int = Field(default=5, gt=0)
    admin_pin_lockout_seconds: int = Field(default=900, gt=0)
    failed_pin_delay_seconds: float = Field(default=0.5, ge=0)

    # Notifications
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = Field(default=10.0, gt=0)

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8080, ge=1, le=65535)
    health_check_port: int = Field(default=8081, ge=1, le=65535)

    # Scheduled trigger (UTC cron)
    distribution_timeframe: str = "week"
    distribution_cron_day_of_week: str = "mon"
    distribution_cron_hour: int = Field(default=16, ge=0, le=23)
    distribution_cron_minute: int = Field(default=59, ge=0, le=59)

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "asset_address",
        "spend_permission_manager_address",
        "operator_address",
        "authorizer_address",
    )
    @classmethod
    def validate_eth_address(cls, v: str | None) -> str | None:
        """Validate Ethereum address format."""
        if v is None:
            return v
        if not v.startswith("0x") or len(v) != 42:
            raise ValueError(
                f"Invalid Ethereum address: {v}. "
                "Must start with 0x and be 42 characters long."
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f"Invalid Ethereum address format: {v}") from exc
        return v.lower()

    @field_validator("distribution_timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        """Scheduled runs must target a known timeframe."""
        if v not in ("week", "month", "all-time"):
            raise ValueError(
                "DISTRIBUTION_TIMEFRAME must be one of: week, month, all-time"
            )
        return v

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Warn about weak or missing secrets in production."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if not self.automated_trigger_secret:
                logger.warning(
                    "AUTOMATED_TRIGGER_SECRET is not set. "
                    "Automated reward distribution will be rejected."
                )
            elif len(self.automated_trigger_secret) < 16:
                logger.warning(
                    "AUTOMATED_TRIGGER_SECRET is shorter than 16 characters. "
                    "Generate one with: openssl rand -hex 32"
                )
            if not self.operator_private_key:
                logger.warning(
                    "OPERATOR_PRIVATE_KEY is not set. "
                    "Payouts cannot be signed until it is configured."
                )
        return self

    @property
    def dust_threshold(self) -> int:
        """Minimum payout in smallest units."""
        if self.dust_threshold_units is not None:
            return self.dust_threshold_units
        return max(1, 10**self.asset_decimals // DUST_THRESHOLD_FRACTION_DIVISOR)


# Global settings instance
settings = Settings()
