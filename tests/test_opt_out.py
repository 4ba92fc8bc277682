"""Unit tests for opt-out windows and re-enrolment scheduling."""

import pytest
from datetime import date
from decimal import Decimal

from autoenrol_engine.calculators.opt_out import (
    OPT_OUT_WINDOWS,
    check_window,
    is_re_enrolment_due,
    re_enrolment_projection,
    refund_for,
    schedule_re_enrolment,
    validate_opt_out,
    window_bounds,
    window_description,
)
from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import (
    ContributionRecord,
    EnrolmentType,
    OptOutWindowState,
    StagingFrequency,
)
from autoenrol_engine.exceptions import InputError

ENROLLED = date(2026, 1, 1)


class TestWindowStates:
    """Window state is a pure function of elapsed time."""

    def test_initial_window_bounds(self):
        assert window_bounds(ENROLLED, EnrolmentType.INITIAL) == (
            date(2026, 1, 15),
            date(2026, 1, 29),
        )

    def test_re_enrolment_window_bounds(self):
        assert window_bounds(ENROLLED, EnrolmentType.RE_ENROLMENT) == (
            date(2026, 2, 12),
            date(2026, 2, 26),
        )

    @pytest.mark.parametrize(
        "today,state",
        [
            (date(2026, 1, 14), OptOutWindowState.BEFORE_WINDOW),
            (date(2026, 1, 15), OptOutWindowState.OPEN),
            (date(2026, 1, 29), OptOutWindowState.OPEN),
            (date(2026, 1, 30), OptOutWindowState.EXPIRED),
        ],
    )
    def test_state_transitions(self, today, state):
        assert check_window(ENROLLED, EnrolmentType.INITIAL, today).state == state

    def test_days_remaining(self):
        status = check_window(ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 15))
        assert status.days_remaining == 14
        assert status.is_within_window is True
        assert status.waiting_period_complete is True

    def test_expired_flags(self):
        status = check_window(ENROLLED, EnrolmentType.INITIAL, date(2026, 3, 1))
        assert status.window_expired is True
        assert status.days_remaining == 0


class TestValidateOptOut:
    """Test opt-out request decisions."""

    def test_request_on_open_date_valid(self):
        assert validate_opt_out(ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 15)).is_valid

    def test_request_on_close_date_valid(self):
        assert validate_opt_out(ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 29)).is_valid

    def test_request_before_window(self):
        decision = validate_opt_out(ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 14))
        assert decision.is_valid is False
        assert decision.reason == (
            "Opt-out not allowed during 2-week waiting period. Window opens on 2026-01-15."
        )
        assert decision.refund is None

    def test_request_after_window(self):
        decision = validate_opt_out(ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 30))
        assert decision.is_valid is False
        assert decision.reason.startswith("Opt-out window expired on 2026-01-29.")

    def test_re_enrolment_waiting_period_is_six_weeks(self):
        decision = validate_opt_out(ENROLLED, EnrolmentType.RE_ENROLMENT, date(2026, 1, 20))
        assert "6-week waiting period" in decision.reason

    def test_valid_request_refunds_and_schedules(self):
        contributions = [
            ContributionRecord(date(2026, 1, 1), Decimal("50"), Decimal("50"), Decimal("16.67")),
            ContributionRecord(date(2026, 1, 15), Decimal("50"), Decimal("50"), Decimal("16.67")),
            ContributionRecord(date(2026, 2, 1), Decimal("50"), Decimal("50"), Decimal("16.67")),
        ]
        decision = validate_opt_out(
            ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 20), contributions
        )
        assert decision.refund.employee_refund == Decimal("100.00")
        assert decision.refund.employer_refund == Decimal("100.00")
        assert decision.refund.total_refund == Decimal("200.00")
        assert decision.refund.contribution_count == 2
        assert decision.re_enrolment.next_re_enrolment_date == date(2028, 1, 20)

    def test_re_enrolment_aligned_to_staging(self):
        calendar = StagingCalendar(StagingFrequency.QUARTERLY, (1,))
        decision = validate_opt_out(
            ENROLLED, EnrolmentType.INITIAL, date(2026, 1, 20), staging=calendar
        )
        assert decision.re_enrolment.next_re_enrolment_date == date(2028, 4, 1)


class TestRefund:
    def test_range_is_inclusive(self):
        contributions = [
            ContributionRecord(date(2026, 1, 1), Decimal("10"), Decimal("10")),
            ContributionRecord(date(2026, 1, 20), Decimal("10"), Decimal("10")),
        ]
        refund = refund_for(contributions, date(2026, 1, 1), date(2026, 1, 20))
        assert refund.contribution_count == 2

    def test_state_contribution_never_refunded(self):
        contributions = [
            ContributionRecord(date(2026, 1, 1), Decimal("10"), Decimal("10"), Decimal("5")),
        ]
        refund = refund_for(contributions, date(2026, 1, 1), date(2026, 1, 20))
        assert refund.total_refund == Decimal("20.00")


class TestReEnrolmentSchedule:
    """Test the re-enrolment schedule and due predicate."""

    def test_interval_added_to_opt_out_date(self):
        schedule = schedule_re_enrolment(date(2024, 3, 10), date(2025, 3, 10))
        assert schedule.next_re_enrolment_date == date(2026, 3, 10)
        assert schedule.years_since_opt_out == 1
        assert schedule.days_until == 365
        assert schedule.is_due is False

    def test_due_on_re_enrolment_date(self):
        assert is_re_enrolment_due(date(2024, 3, 10), date(2026, 3, 10))
        assert not is_re_enrolment_due(date(2024, 3, 10), date(2026, 3, 9))

    def test_leap_day_opt_out(self):
        schedule = schedule_re_enrolment(date(2024, 2, 29), date(2026, 3, 1))
        assert schedule.next_re_enrolment_date == date(2026, 2, 28)
        assert schedule.is_due is True
        assert schedule.days_until == 0

    def test_staging_date_on_target_is_kept(self):
        """A re-enrolment date that is itself a staging date is not moved."""
        calendar = StagingCalendar(StagingFrequency.QUARTERLY, (1,))
        schedule = schedule_re_enrolment(date(2024, 4, 1), date(2024, 4, 1), calendar)
        assert schedule.next_re_enrolment_date == date(2026, 4, 1)

    def test_window_follows_re_enrolment(self):
        schedule = schedule_re_enrolment(date(2024, 3, 10), date(2024, 3, 10))
        assert schedule.opt_out_window_open_date == date(2026, 4, 21)
        assert schedule.opt_out_window_close_date == date(2026, 5, 5)

    def test_configurable_interval(self):
        schedule = schedule_re_enrolment(date(2024, 3, 10), date(2024, 3, 10), interval_years=3)
        assert schedule.next_re_enrolment_date == date(2027, 3, 10)

    def test_invalid_interval_rejected(self):
        with pytest.raises(InputError):
            schedule_re_enrolment(date(2024, 3, 10), date(2024, 3, 10), interval_years=0)

    def test_projection_cycles(self):
        cycles = re_enrolment_projection(date(2024, 3, 10), 6)
        assert len(cycles) == 3
        assert cycles[0].next_re_enrolment_date == date(2026, 3, 10)
        # Next opt-out is assumed on the close of the previous window
        assert cycles[1].last_opt_out_date == cycles[0].opt_out_window_close_date


class TestDescriptions:
    def test_initial(self):
        assert window_description(EnrolmentType.INITIAL) == (
            "Initial opt-out window: weeks 2-4 after automatic enrolment (2-week window)"
        )

    def test_window_durations(self):
        assert OPT_OUT_WINDOWS[EnrolmentType.RE_ENROLMENT].duration_weeks == 2
