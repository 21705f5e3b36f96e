"""
Settings for the SpeedoTransfer API, read with pydantic-settings.

Values come from the process environment first, then from a local .env
file, then from the defaults below. Secrets have no default and must be
provided; .env.example lists everything that can be set.

Usage:
    from speedo.config import settings
    settings.DATABASE_URL
"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the SpeedoTransfer API.

    SECRET_KEY has no default and must be set; it signs session JWTs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "SpeedoTransfer API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for local use; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/speedo.db"

    # --- Sessions ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Accounts ---
    # Every newly opened account starts with this balance (in its own currency)
    INITIAL_ACCOUNT_BALANCE: Decimal = Decimal("100.00")

    # --- Exchange rates ---
    # Units of each currency bought by one US dollar. Cross rates are derived
    # from this table, so every supported currency needs an entry.
    EXCHANGE_RATES_PER_USD: dict[str, Decimal] = {
        "USD": Decimal("1"),
        "EUR": Decimal("0.90"),
        "GBP": Decimal("0.78"),
        "EGP": Decimal("48.50"),
        "SAR": Decimal("3.75"),
        "AED": Decimal("3.6725"),
    }

    # --- CORS ---
    # Frontend origins allowed by CORS
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Shared instance; import this rather than building Settings() again
settings = Settings()
