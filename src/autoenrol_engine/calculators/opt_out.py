"""Opt-out windows and re-enrolment scheduling.

Window state is a pure function of the enrolment date and the date being
assessed:

    before_window --(open date)--> open --(day after close)--> expired

Both the open and the close dates are inside the window. Nothing is
stored between calls; the only state a caller keeps is the last opt-out
date and its staging calendar.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from autoenrol_engine.calculators.dates import (
    add_weeks,
    add_years,
    days_between,
    full_years_between,
    normalize_date,
)
from autoenrol_engine.calculators.money import ZERO, round_to_cents
from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import (
    ContributionRecord,
    EnrolmentType,
    OptOutDecision,
    OptOutWindowState,
    OptOutWindowStatus,
    ReEnrolmentSchedule,
    RefundBreakdown,
)
from autoenrol_engine.exceptions import InputError

DEFAULT_RE_ENROLMENT_INTERVAL_YEARS = 2


@dataclass(frozen=True)
class OptOutWindow:
    """Window bounds in weeks after (re-)enrolment, both inclusive."""

    opens_after_weeks: int
    closes_after_weeks: int

    @property
    def duration_weeks(self) -> int:
        return self.closes_after_weeks - self.opens_after_weeks


OPT_OUT_WINDOWS: dict[EnrolmentType, OptOutWindow] = {
    EnrolmentType.INITIAL: OptOutWindow(opens_after_weeks=2, closes_after_weeks=4),
    EnrolmentType.RE_ENROLMENT: OptOutWindow(opens_after_weeks=6, closes_after_weeks=8),
}


def window_bounds(enrolment_date: date, enrolment_type: EnrolmentType) -> tuple[date, date]:
    """Open and close dates of the opt-out window."""
    window = OPT_OUT_WINDOWS[EnrolmentType(enrolment_type)]
    start = normalize_date(enrolment_date)
    return (
        add_weeks(start, window.opens_after_weeks),
        add_weeks(start, window.closes_after_weeks),
    )


def check_window(
    enrolment_date: date, enrolment_type: EnrolmentType, assessment_date: date
) -> OptOutWindowStatus:
    """Locate the assessment date relative to the opt-out window."""
    open_date, close_date = window_bounds(enrolment_date, enrolment_type)
    today = normalize_date(assessment_date)

    if today < open_date:
        state = OptOutWindowState.BEFORE_WINDOW
    elif today <= close_date:
        state = OptOutWindowState.OPEN
    else:
        state = OptOutWindowState.EXPIRED

    return OptOutWindowStatus(
        enrolment_type=EnrolmentType(enrolment_type),
        state=state,
        window_open_date=open_date,
        window_close_date=close_date,
        days_remaining=days_between(today, close_date) if state == OptOutWindowState.OPEN else 0,
    )


def schedule_re_enrolment(
    last_opt_out_date: date,
    today: date,
    staging: StagingCalendar | None = None,
    interval_years: int = DEFAULT_RE_ENROLMENT_INTERVAL_YEARS,
) -> ReEnrolmentSchedule:
    """Next re-enrolment after an opt-out.

    The date is the opt-out date plus the interval, moved forward to the
    first staging date on or after it when a calendar is supplied.
    """
    if interval_years < 1:
        raise InputError("interval_years", interval_years, "must be at least 1")
    opted_out = normalize_date(last_opt_out_date)
    today = normalize_date(today)

    next_date = add_years(opted_out, interval_years)
    if staging is not None:
        next_date = staging.next_on_or_after(next_date)

    open_date, close_date = window_bounds(next_date, EnrolmentType.RE_ENROLMENT)
    return ReEnrolmentSchedule(
        last_opt_out_date=opted_out,
        next_re_enrolment_date=next_date,
        opt_out_window_open_date=open_date,
        opt_out_window_close_date=close_date,
        years_since_opt_out=full_years_between(opted_out, today),
        days_until=max(0, days_between(today, next_date)),
        is_due=today >= next_date,
    )


def is_re_enrolment_due(
    last_opt_out_date: date,
    today: date,
    staging: StagingCalendar | None = None,
    interval_years: int = DEFAULT_RE_ENROLMENT_INTERVAL_YEARS,
) -> bool:
    return schedule_re_enrolment(last_opt_out_date, today, staging, interval_years).is_due


def re_enrolment_projection(
    first_opt_out_date: date,
    years: int,
    staging: StagingCalendar | None = None,
    interval_years: int = DEFAULT_RE_ENROLMENT_INTERVAL_YEARS,
) -> list[ReEnrolmentSchedule]:
    """Re-enrolment cycles over a horizon, assuming the worker opts out
    again on the last day of every re-enrolment window."""
    if years < 0:
        raise InputError("years", years, "cannot be negative")
    schedules: list[ReEnrolmentSchedule] = []
    opted_out = normalize_date(first_opt_out_date)
    cycles = -(-years // interval_years)
    for _ in range(cycles):
        schedule = schedule_re_enrolment(opted_out, opted_out, staging, interval_years)
        schedules.append(schedule)
        opted_out = schedule.opt_out_window_close_date
    return schedules


def refund_for(
    contributions: Iterable[ContributionRecord],
    enrolment_date: date,
    opt_out_date: date,
) -> RefundBreakdown:
    """Employee and employer contributions paid between enrolment and
    opt-out, inclusive. State contributions are never refunded."""
    start = normalize_date(enrolment_date)
    end = normalize_date(opt_out_date)
    employee = ZERO
    employer = ZERO
    count = 0
    for record in contributions:
        if start <= normalize_date(record.paid_on) <= end:
            employee += record.employee_amount
            employer += record.employer_amount
            count += 1
    return RefundBreakdown(
        employee_refund=round_to_cents(employee),
        employer_refund=round_to_cents(employer),
        contribution_count=count,
    )


def validate_opt_out(
    enrolment_date: date,
    enrolment_type: EnrolmentType,
    request_date: date,
    contributions: Iterable[ContributionRecord] = (),
    staging: StagingCalendar | None = None,
    interval_years: int = DEFAULT_RE_ENROLMENT_INTERVAL_YEARS,
) -> OptOutDecision:
    """Decide whether an opt-out request falls inside its window.

    A valid request carries the refund due and the re-enrolment that
    follows it. Invalid requests carry the reason only.
    """
    window = check_window(enrolment_date, enrolment_type, request_date)
    profile = OPT_OUT_WINDOWS[window.enrolment_type]

    if window.state == OptOutWindowState.BEFORE_WINDOW:
        return OptOutDecision(
            is_valid=False,
            window=window,
            reason=(
                f"Opt-out not allowed during {profile.opens_after_weeks}-week waiting period. "
                f"Window opens on {window.window_open_date.isoformat()}."
            ),
        )

    if window.state == OptOutWindowState.EXPIRED:
        return OptOutDecision(
            is_valid=False,
            window=window,
            reason=(
                f"Opt-out window expired on {window.window_close_date.isoformat()}. "
                "Enrolment continues and contributions will be deducted."
            ),
        )

    return OptOutDecision(
        is_valid=True,
        window=window,
        refund=refund_for(contributions, enrolment_date, request_date),
        re_enrolment=schedule_re_enrolment(
            request_date, request_date, staging, interval_years
        ),
    )


def window_description(enrolment_type: EnrolmentType) -> str:
    window = OPT_OUT_WINDOWS[EnrolmentType(enrolment_type)]
    if EnrolmentType(enrolment_type) == EnrolmentType.INITIAL:
        return (
            f"Initial opt-out window: weeks {window.opens_after_weeks}-"
            f"{window.closes_after_weeks} after automatic enrolment "
            f"({window.duration_weeks}-week window)"
        )
    return (
        f"Re-enrolment opt-out window: weeks {window.opens_after_weeks}-"
        f"{window.closes_after_weeks} after re-enrolment "
        f"({window.duration_weeks}-week window)"
    )
