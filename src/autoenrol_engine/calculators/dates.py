"""Exact-day date and age arithmetic.

Every helper here is pure: the reference date is always an argument and
the clock is never read. Datetimes are reduced to UTC calendar dates
before any comparison so that an instant maps to one day everywhere.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone

from autoenrol_engine.exceptions import InputError

MAX_PLAUSIBLE_AGE = 120
MIN_WORKING_AGE = 14
EARLIEST_PLAUSIBLE_BIRTH_YEAR = 1920


def normalize_date(value: date | datetime) -> date:
    """Reduce a date or datetime to a UTC calendar date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise InputError("date", value, "expected a date or datetime")


def _clamped(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def add_months(start: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    index = start.year * 12 + (start.month - 1) + months
    year, month_index = divmod(index, 12)
    return _clamped(year, month_index + 1, start.day)


def add_years(start: date, years: int) -> date:
    """Add calendar years; 29 February becomes 28 February in common years."""
    return _clamped(start.year + years, start.month, start.day)


def add_weeks(start: date, weeks: int) -> date:
    return start + timedelta(weeks=weeks)


def days_between(start: date, end: date) -> int:
    """Signed number of days from start to end."""
    return (end - start).days


def _anniversary_passed(anchor: date, reference: date) -> bool:
    return (reference.month, reference.day) >= (anchor.month, anchor.day)


def exact_age(birth: date | datetime, reference: date | datetime) -> int:
    """Full years of age on the reference date.

    The age increments on the month/day anniversary of birth; someone
    born on 29 February turns a year older on 1 March in common years.

    Raises:
        InputError: If birth falls after the reference date.
    """
    birth_day = normalize_date(birth)
    reference_day = normalize_date(reference)
    if birth_day > reference_day:
        raise InputError(
            "date_of_birth",
            birth_day.isoformat(),
            f"after reference date {reference_day.isoformat()}",
        )

    age = reference_day.year - birth_day.year
    if not _anniversary_passed(birth_day, reference_day):
        age -= 1
    return age


def date_at_age(birth: date | datetime, age: int) -> date:
    """First day on which exact_age(birth, day) equals age."""
    if age < 0:
        raise InputError("age", age, "cannot be negative")
    birth_day = normalize_date(birth)
    year = birth_day.year + age
    if birth_day.month == 2 and birth_day.day == 29 and not calendar.isleap(year):
        return date(year, 3, 1)
    return date(year, birth_day.month, birth_day.day)


def full_years_between(start: date | datetime, end: date | datetime) -> int:
    """Whole anniversaries elapsed from start to end, never negative."""
    start_day = normalize_date(start)
    end_day = normalize_date(end)
    if end_day <= start_day:
        return 0
    years = end_day.year - start_day.year
    if not _anniversary_passed(start_day, end_day):
        years -= 1
    return max(0, years)


def full_months_between(start: date | datetime, end: date | datetime) -> int:
    """Whole months elapsed from start to end, truncated toward zero.

    A negative day-of-month difference removes one whole month, so
    15 January to 14 July is five months and 15 January to 15 July is six.
    """
    start_day = normalize_date(start)
    end_day = normalize_date(end)
    months = (end_day.year - start_day.year) * 12 + (end_day.month - start_day.month)
    if end_day.day < start_day.day:
        months -= 1
    return max(0, months)


def days_until_next_birthday(birth: date | datetime, reference: date | datetime) -> int:
    """Days from reference to the next birthday; zero on the birthday itself."""
    birth_day = normalize_date(birth)
    reference_day = normalize_date(reference)
    age_next = exact_age(birth_day, reference_day) + 1
    if (birth_day.month, birth_day.day) == (reference_day.month, reference_day.day):
        return 0
    return days_between(reference_day, date_at_age(birth_day, age_next))


def age_group(age: int) -> str:
    """Reporting band for an age in years."""
    if age < 18:
        return "Under 18"
    if age < 23:
        return "18-22"
    if age < 30:
        return "23-29"
    if age < 40:
        return "30-39"
    if age < 50:
        return "40-49"
    if age < 60:
        return "50-59"
    if age < 66:
        return "60-65"
    return "Over 65"


def validate_date_of_birth(
    birth: date | datetime, reference: date | datetime
) -> list[str]:
    """Return data-quality warnings for a date of birth.

    These are caller-facing warnings only; an implausible birth date is
    never an engine error by itself.
    """
    birth_day = normalize_date(birth)
    reference_day = normalize_date(reference)
    warnings: list[str] = []

    if birth_day > reference_day:
        warnings.append("Date of birth cannot be in the future")
        return warnings

    age = exact_age(birth_day, reference_day)
    if age > MAX_PLAUSIBLE_AGE:
        warnings.append(
            f"Date of birth indicates age over {MAX_PLAUSIBLE_AGE} years - likely data error"
        )
    if age < MIN_WORKING_AGE:
        warnings.append(f"Employee must be at least {MIN_WORKING_AGE} years old")
    if birth_day.year < EARLIEST_PLAUSIBLE_BIRTH_YEAR:
        warnings.append(
            f"Date of birth before {EARLIEST_PLAUSIBLE_BIRTH_YEAR} is likely a data entry error"
        )
    return warnings
