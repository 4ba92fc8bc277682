"""Earnings annualization.

Every pay cadence is converted through one table of periods per year,
built on the 365.25/7 weeks-per-year constant. Amounts are rounded to
cents after each multiplication or division, never at the end.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from autoenrol_engine.calculators.money import (
    DAYS_PER_YEAR,
    WEEKS_PER_YEAR,
    ZERO,
    round_to_cents,
    to_decimal,
)
from autoenrol_engine.calculators.types import (
    AnnualizedEarnings,
    ContractType,
    PayFrequency,
)
from autoenrol_engine.exceptions import InputError

MINIMUM_EARNINGS = Decimal("20000")
UPPER_EARNINGS_LIMIT = Decimal("80000")
FULL_TIME_HOURS = Decimal("37.5")
MAX_WEEKLY_HOURS = Decimal("168")
PRO_RATA_PLACES = Decimal("0.0001")

PERIODS_PER_YEAR: dict[PayFrequency, Decimal] = {
    PayFrequency.WEEKLY: WEEKS_PER_YEAR,
    PayFrequency.FORTNIGHTLY: WEEKS_PER_YEAR / 2,
    PayFrequency.FOUR_WEEKLY: WEEKS_PER_YEAR / 4,
    PayFrequency.MONTHLY: Decimal("12"),
    PayFrequency.ANNUAL: Decimal("1"),
}

_FREQUENCY_ALIASES: dict[str, PayFrequency] = {
    "weekly": PayFrequency.WEEKLY,
    "week": PayFrequency.WEEKLY,
    "fortnightly": PayFrequency.FORTNIGHTLY,
    "fortnight": PayFrequency.FORTNIGHTLY,
    "biweekly": PayFrequency.FORTNIGHTLY,
    "fourweekly": PayFrequency.FOUR_WEEKLY,
    "fourweeks": PayFrequency.FOUR_WEEKLY,
    "lunar": PayFrequency.FOUR_WEEKLY,
    "monthly": PayFrequency.MONTHLY,
    "month": PayFrequency.MONTHLY,
    "annual": PayFrequency.ANNUAL,
    "annually": PayFrequency.ANNUAL,
    "yearly": PayFrequency.ANNUAL,
    "year": PayFrequency.ANNUAL,
}

_EARNINGS_BANDS: list[tuple[Decimal, str]] = [
    (Decimal("20000"), "Below EUR 20k (not auto-enrolment qualifying)"),
    (Decimal("30000"), "EUR 20k-30k"),
    (Decimal("40000"), "EUR 30k-40k"),
    (Decimal("50000"), "EUR 40k-50k"),
    (Decimal("60000"), "EUR 50k-60k"),
    (Decimal("80000"), "EUR 60k-80k"),
    (Decimal("100000"), "EUR 80k-100k"),
]


@dataclass(frozen=True)
class AnnualizationInput:
    """Gross pay for one period plus the facts needed to annualize it."""

    gross_pay: Decimal
    pay_frequency: PayFrequency
    hours_per_week: Decimal | None = None
    contract_type: ContractType = ContractType.FULL_TIME
    weeks_worked: Decimal | None = None


def parse_pay_frequency(value: str | PayFrequency) -> PayFrequency:
    """Parse a pay frequency, accepting common spellings.

    Raises:
        InputError: If the frequency is not recognised.
    """
    if isinstance(value, PayFrequency):
        return value
    key = "".join(ch for ch in str(value).lower() if ch not in "-_ ")
    try:
        return _FREQUENCY_ALIASES[key]
    except KeyError:
        raise InputError("pay_frequency", value, "unrecognised pay frequency") from None


def periods_per_year(frequency: PayFrequency | str) -> Decimal:
    return PERIODS_PER_YEAR[parse_pay_frequency(frequency)]


def pro_rata_factor(hours_per_week: Decimal | None) -> Decimal:
    """Fraction of full-time hours worked, capped at 1."""
    if hours_per_week is None or hours_per_week >= FULL_TIME_HOURS:
        return Decimal("1")
    return (hours_per_week / FULL_TIME_HOURS).quantize(PRO_RATA_PLACES)


def annualize(
    data: AnnualizationInput,
    minimum_threshold: Decimal = MINIMUM_EARNINGS,
    upper_limit: Decimal = UPPER_EARNINGS_LIMIT,
) -> AnnualizedEarnings:
    """Convert periodic gross pay to annual, weekly and monthly figures.

    Partial years are scaled by weeks_worked over the canonical weeks per
    year. Hours only reduce earnings for part-time contracts; the factor
    is reported either way.

    Raises:
        InputError: On negative pay, hours outside 0-168 or negative weeks.
    """
    gross = to_decimal(data.gross_pay)
    frequency = parse_pay_frequency(data.pay_frequency)
    hours = None if data.hours_per_week is None else to_decimal(data.hours_per_week)
    weeks = None if data.weeks_worked is None else to_decimal(data.weeks_worked)
    if gross < 0:
        raise InputError("gross_pay", gross, "cannot be negative")
    if hours is not None and not ZERO <= hours <= MAX_WEEKLY_HOURS:
        raise InputError("hours_per_week", hours, "must be between 0 and 168")
    if weeks is not None and weeks < 0:
        raise InputError("weeks_worked", weeks, "cannot be negative")

    annual = round_to_cents(gross * PERIODS_PER_YEAR[frequency])

    if weeks is not None and weeks > 0:
        annual = round_to_cents(annual * weeks / WEEKS_PER_YEAR)

    factor = pro_rata_factor(hours)
    if data.contract_type == ContractType.PART_TIME and hours is not None:
        annual = round_to_cents(annual * factor)

    return AnnualizedEarnings(
        gross_pay=gross,
        pay_frequency=frequency,
        annual_earnings=annual,
        weekly_earnings=round_to_cents(annual / WEEKS_PER_YEAR),
        monthly_earnings=round_to_cents(annual / 12),
        reckonable_earnings=min(annual, upper_limit),
        meets_minimum_threshold=annual >= minimum_threshold,
        exceeds_upper_limit=annual > upper_limit,
        pro_rata_factor=factor,
    )


def deannualize(annual: Decimal, frequency: PayFrequency | str) -> Decimal:
    """Convert an annual amount to one pay period."""
    return round_to_cents(to_decimal(annual) / periods_per_year(frequency))


def earnings_for_period(data: AnnualizationInput, weeks: Decimal) -> Decimal:
    """Earnings over a number of weeks at the annualized weekly rate."""
    if weeks < 0:
        raise InputError("weeks", weeks, "cannot be negative")
    return round_to_cents(annualize(data).weekly_earnings * weeks)


def meets_threshold_over_six_months(
    data: AnnualizationInput, minimum_threshold: Decimal = MINIMUM_EARNINGS
) -> bool:
    """Whether half-year earnings reach half the annual minimum."""
    half_year = earnings_for_period(data, WEEKS_PER_YEAR / 2)
    return half_year >= round_to_cents(minimum_threshold / 2)


def pro_rata_earnings(
    gross_pay: Decimal, frequency: PayFrequency | str, start: date, end: date
) -> Decimal:
    """Earnings attributable to the days from start to end."""
    if end < start:
        raise InputError("end", end.isoformat(), "before start date")
    annual = annualize(AnnualizationInput(gross_pay, parse_pay_frequency(frequency)))
    days = Decimal((end - start).days)
    return round_to_cents(annual.annual_earnings * days / DAYS_PER_YEAR)


def average_annual_earnings(
    amounts: Iterable[Decimal], frequency: PayFrequency | str
) -> AnnualizedEarnings:
    """Annualize the mean of several pay periods."""
    values = [to_decimal(amount) for amount in amounts]
    if not values:
        raise InputError("amounts", values, "at least one pay period is required")
    average = round_to_cents(sum(values, ZERO) / len(values))
    return annualize(AnnualizationInput(average, parse_pay_frequency(frequency)))


def earnings_band(annual: Decimal) -> str:
    for upper, label in _EARNINGS_BANDS:
        if annual < upper:
            return label
    return "Over EUR 100k"


def validate_earnings(gross_pay: Decimal, frequency: PayFrequency | str) -> list[str]:
    """Data-quality warnings for a gross pay figure.

    Raises:
        InputError: If the pay is negative or the frequency unknown.
    """
    if gross_pay < 0:
        raise InputError("gross_pay", gross_pay, "cannot be negative")
    warnings: list[str] = []
    if gross_pay == 0:
        warnings.append("Gross pay is zero - employee may be on unpaid leave")
        return warnings

    annual = annualize(AnnualizationInput(gross_pay, parse_pay_frequency(frequency)))
    if annual.annual_earnings < Decimal("1000"):
        warnings.append("Annual earnings below EUR 1,000 - may indicate data entry error")
    if annual.annual_earnings > Decimal("500000"):
        warnings.append("Annual earnings exceed EUR 500,000 - please verify data accuracy")
    return warnings
