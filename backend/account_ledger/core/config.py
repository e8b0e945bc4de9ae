from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Search .env in CWD first, then parent dir.
        # Works when pytest runs from backend/ (finds ../.env)
        # and when Docker mounts .env at the container working dir.
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        # Ignore env vars (e.g. POSTGRES_USER) not declared as Settings fields
        extra="ignore",
    )

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./accounts.db"
    # Upper bound on waiting for a row/table lock inside the database
    DB_LOCK_TIMEOUT_SECONDS: float = 5.0

    # --- New account defaults ---
    INITIAL_RATING: int = 1500
    INITIAL_COINS: int = 100

    # --- Credentials ---
    SALT_BYTES: int = 32
    PASSWORD_HASH_ITERATIONS: int = 100_000

    # --- Ledger ---
    LOCK_TIMEOUT_SECONDS: float = 5.0
    LEDGER_MAX_RETRIES: int = 3
    LEDGER_RETRY_BACKOFF_SECONDS: float = 0.05

    # --- Read endpoints ---
    LEADERBOARD_PAGE_SIZE: int = 30

    # --- Registration front door ---
    REGISTER_RATE_LIMIT: str = "10/minute"

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # development | staging | production

    # --- CORS (comma-separated string parsed into a list) ---
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @field_validator("LOG_LEVEL")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}")
        return v.upper()

    @field_validator("INITIAL_COINS")
    @classmethod
    def initial_coins_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("INITIAL_COINS must not be negative")
        return v

    @field_validator("SALT_BYTES")
    @classmethod
    def salt_long_enough(cls, v: int) -> int:
        """Short salts defeat the point of salting."""
        if v < 16:
            raise ValueError("SALT_BYTES must be at least 16")
        return v

    @field_validator("LEDGER_MAX_RETRIES")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        if v < 1:
            raise ValueError("LEDGER_MAX_RETRIES must be at least 1")
        return v

    @property
    def is_dev_like(self) -> bool:
        return self.ENVIRONMENT.lower() in {"development", "dev", "testing", "test"}

    def get_cors_origins(self) -> List[str]:
        """Parse comma-separated CORS_ORIGINS into a list."""
        return [
            origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()
