"""Pytest fixtures for auto-enrolment engine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable

import pytest

from autoenrol_engine.calculators.engine import EligibilityEngine
from autoenrol_engine.calculators.types import (
    EligibilityInput,
    MonthlyEarnings,
    PayFrequency,
)
from autoenrol_engine.config import Settings

ASSESSMENT_DATE = date(2026, 6, 30)


@pytest.fixture
def settings() -> Settings:
    """Statutory defaults, independent of the environment."""
    return Settings(
        engine_version="test",
        log_level="WARNING",
        minimum_age=23,
        maximum_age=60,
        minimum_earnings=Decimal("20000"),
        upper_earnings_limit=Decimal("80000"),
        waiting_period_months=6,
        re_enrolment_interval_years=2,
        batch_max_workers=2,
    )


@pytest.fixture
def engine(settings: Settings) -> EligibilityEngine:
    return EligibilityEngine(settings)


@pytest.fixture
def assessment_date() -> date:
    return ASSESSMENT_DATE


@pytest.fixture
def eligible_employee() -> EligibilityInput:
    """A 36-year-old on EUR 3,000 a month, employed for over a year."""
    return EligibilityInput(
        employee_id="EMP001",
        date_of_birth=date(1990, 3, 15),
        employment_start_date=date(2025, 1, 6),
        earnings=Decimal("3000"),
        pay_frequency=PayFrequency.MONTHLY,
    )


@pytest.fixture
def make_employee(eligible_employee: EligibilityInput) -> Callable[..., EligibilityInput]:
    """Factory returning the eligible employee with fields overridden."""

    def _make(**overrides: Any) -> EligibilityInput:
        return replace(eligible_employee, **overrides)

    return _make


@pytest.fixture
def make_history() -> Callable[..., tuple[MonthlyEarnings, ...]]:
    """Factory for consecutive months of gross pay from January 2025."""

    def _make(*amounts: str, start_year: int = 2025) -> tuple[MonthlyEarnings, ...]:
        history = []
        for offset, amount in enumerate(amounts):
            year, month = divmod(offset, 12)
            history.append(
                MonthlyEarnings(month=f"{start_year + year:04d}-{month + 1:02d}", gross=Decimal(amount))
            )
        return tuple(history)

    return _make
