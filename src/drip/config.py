"""Configuration management for DRIP using Pydantic Settings."""

from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkName(str, Enum):
    """Fusion network presets."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


class DripConfig(BaseSettings):
    """DRIP service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Network
    network: NetworkName = Field(default=NetworkName.TESTNET, alias="DRIP_NETWORK")
    gateway_url: str | None = Field(default=None, alias="DRIP_GATEWAY_URL")
    block_explorer_url: str | None = Field(default=None, alias="DRIP_BLOCK_EXPLORER_URL")

    # Wallet
    wallet_private_key: SecretStr | None = Field(default=None, alias="DRIP_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(default=None, alias="DRIP_WALLET_PRIVATE_KEY_FILE")

    # Faucet rules
    payout_gwei: int = Field(default=2, alias="DRIP_PAYOUT_GWEI", gt=0)
    claim_window_hours: int = Field(default=24, alias="DRIP_CLAIM_WINDOW_HOURS", gt=0)

    # HTTP API
    host: str = Field(default="0.0.0.0", alias="DRIP_HOST")  # noqa: S104
    port: int = Field(default=3001, alias="DRIP_PORT", ge=1, le=65535)
    rate_limit_max: int = Field(default=10, alias="DRIP_RATE_LIMIT_MAX", gt=0)
    rate_limit_window_minutes: int = Field(
        default=15, alias="DRIP_RATE_LIMIT_WINDOW_MINUTES", gt=0
    )

    # Gateway connection
    reconnect_delay_ms: int = Field(default=500, alias="DRIP_RECONNECT_DELAY_MS", ge=0)
    probe_interval_seconds: float = Field(
        default=5.0, alias="DRIP_PROBE_INTERVAL_SECONDS", gt=0
    )

    # Redis
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Observability
    metrics_port: int = Field(default=8080, alias="DRIP_METRICS_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="DRIP_LOG_LEVEL")
    log_format: str = Field(default="json", alias="DRIP_LOG_FORMAT")
