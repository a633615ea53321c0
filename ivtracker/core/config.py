"""Service settings, read from the environment and an optional .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import List


# Names accepted by logging.getLevelName
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Tolerance must stay far below the 7 days separating two Friday expiries
MAX_EXPIRY_TOLERANCE_MINUTES = 24 * 60


class Settings(BaseSettings):
    """Instrument, upstream and scheduling settings for the volatility engine."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Instrument
    currency: str = "BTC"
    index_name: str = "btc_usd"
    kline_symbol: str = "BTCUSDT"

    # Upstream endpoints
    deribit_base_url: str = "https://www.deribit.com/api/v2"
    binance_base_url: str = "https://api.binance.com/api/v3"

    # Outbound request timeouts (seconds)
    request_timeout_seconds: float = 5.0
    chain_timeout_seconds: float = 8.0

    # ATM selection (0 = exact expiry match)
    atm_expiry_tolerance_minutes: int = 0

    # Snapshot refresh cadence (minutes)
    refresh_interval_minutes: int = 15

    # Startup backfill
    backfill_days: int = 7
    backfill_default_iv: float = 50.0  # annualized, percent
    backfill_request_delay_seconds: float = 0.1

    # Logging
    log_level: str = "INFO"

    # CORS Configuration
    cors_origins: str = "*"  # Comma-separated list of allowed origins

    # API Configuration
    backend_port: int = 3201

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize to an upper-case stdlib level name."""
        upper_v = v.upper()
        if upper_v not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}")
        return upper_v

    @field_validator('atm_expiry_tolerance_minutes')
    @classmethod
    def validate_expiry_tolerance(cls, v: int) -> int:
        """Reject tolerances that could span two distinct Friday expiries."""
        if v < 0 or v >= MAX_EXPIRY_TOLERANCE_MINUTES:
            raise ValueError(
                f"atm_expiry_tolerance_minutes must be in [0, {MAX_EXPIRY_TOLERANCE_MINUTES})"
            )
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Allowed CORS origins, split from the comma-separated setting."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Imported as ivtracker.core.config.settings throughout
settings = Settings()
