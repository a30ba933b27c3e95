"""Configuration management for the workday ledger."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

SHRINK_AMOUNT_POLICIES = ("proportional", "resolved")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    shrink_amount_policy: str
    log_level: str

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.shrink_amount_policy not in SHRINK_AMOUNT_POLICIES:
            raise ValueError(
                f"shrink_amount_policy must be one of {SHRINK_AMOUNT_POLICIES}, "
                f"got '{self.shrink_amount_policy}'"
            )
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got '{self.log_level}'")

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///workday_ledger.db",
            ),
            shrink_amount_policy=os.getenv("SHRINK_AMOUNT_POLICY", "proportional").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
