"""Employer staging calendars.

A staging calendar lists the dates on which an employer processes
enrolments and re-enrolments. The calendar is configuration supplied by
the caller; nothing here decides which calendar an employer uses.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from autoenrol_engine.calculators.dates import add_months, days_between, normalize_date
from autoenrol_engine.calculators.types import AutoEnrolmentDate, StagingFrequency
from autoenrol_engine.exceptions import InputError

STAGING_MONTHS: dict[StagingFrequency, tuple[int, ...]] = {
    StagingFrequency.MONTHLY: tuple(range(1, 13)),
    StagingFrequency.QUARTERLY: (1, 4, 7, 10),
    StagingFrequency.BI_ANNUALLY: (1, 7),
    StagingFrequency.ANNUALLY: (1,),
}

DEFAULT_WAITING_PERIOD_MONTHS = 6


@dataclass(frozen=True)
class StagingCalendar:
    """Staging dates defined by a frequency and day(s) of month.

    ``days`` holds either one day used for every staging month, or one day
    per staging month of the frequency (four for quarterly). Days past
    the end of a short month fall on its last day. Staging dates before
    effective_from or after effective_to are never returned.
    """

    frequency: StagingFrequency = StagingFrequency.QUARTERLY
    days: tuple[int, ...] = (1,)
    effective_from: date | None = None
    effective_to: date | None = None

    def __post_init__(self) -> None:
        """Reject calendars that cannot produce dates."""
        errors = self.validate()
        if errors:
            raise InputError("staging_calendar", self.days, "; ".join(errors))

    def validate(self) -> list[str]:
        """Return configuration errors, empty when the calendar is usable."""
        errors: list[str] = []
        months = STAGING_MONTHS.get(StagingFrequency(self.frequency), ())
        if not self.days:
            errors.append("At least one date is required")
        elif len(self.days) not in (1, len(months)):
            errors.append(
                f"Expected 1 or {len(months)} days for {StagingFrequency(self.frequency).value} "
                f"staging, got {len(self.days)}"
            )
        for day in self.days:
            if not 1 <= day <= 31:
                errors.append(f"Invalid day of month: {day}. Must be 1-31")
        if self.effective_from and self.effective_to and self.effective_to <= self.effective_from:
            errors.append("Effective to date must be after effective from date")
        return errors

    def _day_for(self, index: int) -> int:
        return self.days[0] if len(self.days) == 1 else self.days[index]

    def dates_in_year(self, year: int) -> list[date]:
        """All staging dates in a calendar year, in order."""
        result = []
        for index, month in enumerate(STAGING_MONTHS[StagingFrequency(self.frequency)]):
            last_day = calendar.monthrange(year, month)[1]
            result.append(date(year, month, min(self._day_for(index), last_day)))
        return result

    def next_on_or_after(self, day: date) -> date:
        """First staging date falling on or after day, within the effective range.

        Raises:
            InputError: If the calendar stops before a staging date is reached.
        """
        day = normalize_date(day)
        if self.effective_from is not None:
            day = max(day, normalize_date(self.effective_from))
        candidate = self._first_on_or_after(day)
        if self.effective_to is not None and candidate > normalize_date(self.effective_to):
            raise InputError(
                "staging_calendar",
                candidate.isoformat(),
                f"after the calendar ends on {normalize_date(self.effective_to).isoformat()}",
            )
        return candidate

    def _first_on_or_after(self, day: date) -> date:
        for year in (day.year, day.year + 1):
            for candidate in self.dates_in_year(year):
                if candidate >= day:
                    return candidate
        # Every frequency stages at least once in January.
        raise AssertionError("staging calendar produced no dates")

    def next_after(self, day: date) -> date:
        """First staging date strictly after day."""
        return self.next_on_or_after(normalize_date(day) + timedelta(days=1))


DEFAULT_CALENDAR = StagingCalendar()


def auto_enrolment_date(
    employment_start_date: date,
    staging: StagingCalendar | None,
    today: date,
    waiting_period_months: int = DEFAULT_WAITING_PERIOD_MONTHS,
) -> AutoEnrolmentDate:
    """Enrolment date for a new starter: the first staging date on or after
    the end of the waiting period."""
    staging = staging or DEFAULT_CALENDAR
    waiting_end = add_months(normalize_date(employment_start_date), waiting_period_months)
    enrol_on = staging.next_on_or_after(waiting_end)
    today = normalize_date(today)
    return AutoEnrolmentDate(
        waiting_period_end=waiting_end,
        auto_enrolment_date=enrol_on,
        days_until_enrolment=days_between(today, enrol_on),
        ready_to_enrol=waiting_end <= today,
    )
