"""Configuration management for the auto-enrolment engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Statutory parameters and runtime settings loaded from environment."""

    engine_version: str
    log_level: str
    minimum_age: int
    maximum_age: int
    minimum_earnings: Decimal
    upper_earnings_limit: Decimal
    waiting_period_months: int
    re_enrolment_interval_years: int
    batch_max_workers: int

    def __post_init__(self) -> None:
        """Validate settings."""
        if not 0 < self.minimum_age <= self.maximum_age:
            raise ValueError("minimum_age must be positive and not above maximum_age")
        if self.minimum_earnings < 0:
            raise ValueError("minimum_earnings cannot be negative")
        if self.upper_earnings_limit < self.minimum_earnings:
            raise ValueError("upper_earnings_limit must be at least minimum_earnings")
        if self.waiting_period_months < 0:
            raise ValueError("waiting_period_months cannot be negative")
        if self.re_enrolment_interval_years < 1:
            raise ValueError("re_enrolment_interval_years must be at least 1")
        if self.batch_max_workers < 1:
            raise ValueError("batch_max_workers must be at least 1")

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
            minimum_age=int(os.getenv("AE_MINIMUM_AGE", "23")),
            maximum_age=int(os.getenv("AE_MAXIMUM_AGE", "60")),
            minimum_earnings=Decimal(os.getenv("AE_MINIMUM_EARNINGS", "20000")),
            upper_earnings_limit=Decimal(os.getenv("AE_UPPER_EARNINGS_LIMIT", "80000")),
            waiting_period_months=int(os.getenv("AE_WAITING_PERIOD_MONTHS", "6")),
            re_enrolment_interval_years=int(
                os.getenv("AE_RE_ENROLMENT_INTERVAL_YEARS", "2")
            ),
            batch_max_workers=int(os.getenv("BATCH_MAX_WORKERS", "4")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
