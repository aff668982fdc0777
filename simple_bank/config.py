"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Simple Bank"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/simple_bank"
    )

    # Tokens
    # HS256 needs a key of at least 32 characters.
    TOKEN_SYMMETRIC_KEY: str = os.getenv(
        "TOKEN_SYMMETRIC_KEY",
        "development-only-key-change-me-32c",
    )
    ACCESS_TOKEN_DURATION_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_DURATION_MINUTES", "15")
    )

    # Upper bound on how long a transfer may wait for row locks
    TRANSFER_TIMEOUT_SECONDS: float = float(
        os.getenv("TRANSFER_TIMEOUT_SECONDS", "5")
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
