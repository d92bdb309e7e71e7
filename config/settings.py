"""
Pydantic Settings Configuration
================================

All harness configuration is loaded from environment variables.
Copy .env.example to .env and fill in your values.

Values are only type-parsed here. Range checks (price 1-99, count >= 1)
are applied by the runner right before orders are placed.
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Quick-trade configuration loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="KALSHI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ==========================================
    # ORDER PARAMETERS
    # ==========================================
    bot_side: Literal["yes", "no"] = Field(
        default="yes",
        description="Contract side to trade (yes=up, no=down)"
    )
    bot_price_cents: int = Field(
        default=50,
        description="Limit price in cents (1-99). Use the ask to take liquidity"
    )
    bot_contracts: int = Field(
        default=1,
        description="Contracts per order"
    )

    # ==========================================
    # MARKET SELECTION
    # ==========================================
    series_ticker: str = Field(
        default="KXBTC15M",
        description="Series to scan (Bitcoin 15-minute up/down)"
    )
    bot_max_markets: int = Field(
        default=1,
        description="Maximum open markets to request"
    )

    # ==========================================
    # MODE
    # ==========================================
    bot_dry_run: bool = Field(
        default=False,
        description="Simulate orders instead of sending them"
    )

    # ==========================================
    # KALSHI API & AUTH
    # ==========================================
    api_key: str = Field(
        default="",
        description="Kalshi API key id"
    )
    private_key_path: str = Field(
        default="",
        description="Path to the RSA private key (PEM) paired with the API key"
    )
    api_base: str = Field(
        default="https://api.elections.kalshi.com/trade-api/v2",
        description="Kalshi trade API base URL"
    )
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Opt-in total timeout per HTTP request (unset: no timeout)"
    )
    max_requests_per_second: float = Field(
        default=10.0,
        description="Client-side request rate limit"
    )

    # ==========================================
    # LOGGING
    # ==========================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output"
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.private_key_path)


def load_settings(**overrides) -> Settings:
    """
    Build the process-wide settings once.

    Keyword overrides take precedence over environment values.
    """
    return Settings(**overrides)
