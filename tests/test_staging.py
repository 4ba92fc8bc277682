"""Unit tests for staging calendars."""

import pytest
from datetime import date

from autoenrol_engine.calculators.staging import (
    DEFAULT_CALENDAR,
    StagingCalendar,
    auto_enrolment_date,
)
from autoenrol_engine.calculators.types import StagingFrequency
from autoenrol_engine.exceptions import InputError


class TestStagingDates:
    """Test staging date generation."""

    def test_quarterly_dates(self):
        calendar = StagingCalendar(StagingFrequency.QUARTERLY, (1,))
        assert calendar.dates_in_year(2026) == [
            date(2026, 1, 1),
            date(2026, 4, 1),
            date(2026, 7, 1),
            date(2026, 10, 1),
        ]

    def test_one_day_per_month(self):
        calendar = StagingCalendar(StagingFrequency.BI_ANNUALLY, (10, 20))
        assert calendar.dates_in_year(2026) == [date(2026, 1, 10), date(2026, 7, 20)]

    def test_day_clamped_to_month_end(self):
        calendar = StagingCalendar(StagingFrequency.MONTHLY, (31,))
        dates = calendar.dates_in_year(2026)
        assert dates[1] == date(2026, 2, 28)
        assert dates[3] == date(2026, 4, 30)
        assert len(dates) == 12

    def test_annually(self):
        assert StagingCalendar(StagingFrequency.ANNUALLY, (15,)).dates_in_year(2026) == [
            date(2026, 1, 15)
        ]


class TestNextStagingDate:
    def test_on_staging_date(self):
        assert DEFAULT_CALENDAR.next_on_or_after(date(2026, 1, 1)) == date(2026, 1, 1)

    def test_between_staging_dates(self):
        assert DEFAULT_CALENDAR.next_on_or_after(date(2026, 1, 2)) == date(2026, 4, 1)

    def test_strictly_after(self):
        assert DEFAULT_CALENDAR.next_after(date(2026, 1, 1)) == date(2026, 4, 1)

    def test_rolls_into_next_year(self):
        assert DEFAULT_CALENDAR.next_on_or_after(date(2026, 11, 15)) == date(2027, 1, 1)


class TestEffectiveRange:
    """Test that the effective range bounds staging dates."""

    def test_dates_before_start_skipped(self):
        calendar = StagingCalendar(effective_from=date(2026, 5, 1))
        assert calendar.next_on_or_after(date(2026, 1, 1)) == date(2026, 7, 1)

    def test_start_on_staging_date(self):
        calendar = StagingCalendar(effective_from=date(2026, 4, 1))
        assert calendar.next_on_or_after(date(2026, 2, 1)) == date(2026, 4, 1)

    def test_last_date_within_range(self):
        calendar = StagingCalendar(effective_to=date(2026, 7, 1))
        assert calendar.next_on_or_after(date(2026, 5, 1)) == date(2026, 7, 1)

    def test_no_date_after_end(self):
        calendar = StagingCalendar(effective_to=date(2026, 6, 30))
        with pytest.raises(InputError):
            calendar.next_on_or_after(date(2026, 5, 1))

    def test_next_after_respects_start(self):
        calendar = StagingCalendar(effective_from=date(2026, 8, 1))
        assert calendar.next_after(date(2026, 1, 1)) == date(2026, 10, 1)


class TestValidation:
    """Test calendar configuration errors."""

    def test_wrong_number_of_days(self):
        with pytest.raises(InputError):
            StagingCalendar(StagingFrequency.QUARTERLY, (1, 2))

    def test_day_out_of_range(self):
        with pytest.raises(InputError):
            StagingCalendar(StagingFrequency.MONTHLY, (32,))

    def test_no_days(self):
        with pytest.raises(InputError):
            StagingCalendar(StagingFrequency.MONTHLY, ())

    def test_effective_range_reversed(self):
        with pytest.raises(InputError):
            StagingCalendar(
                effective_from=date(2026, 6, 1), effective_to=date(2026, 1, 1)
            )

    def test_valid_calendar_has_no_errors(self):
        assert DEFAULT_CALENDAR.validate() == []


class TestAutoEnrolmentDate:
    def test_first_staging_date_after_waiting_period(self):
        result = auto_enrolment_date(date(2026, 1, 15), DEFAULT_CALENDAR, date(2026, 3, 1))
        assert result.waiting_period_end == date(2026, 7, 15)
        assert result.auto_enrolment_date == date(2026, 10, 1)
        assert result.days_until_enrolment == 214
        assert result.ready_to_enrol is False

    def test_waiting_period_ending_on_staging_date(self):
        result = auto_enrolment_date(date(2026, 1, 1), DEFAULT_CALENDAR, date(2026, 7, 1))
        assert result.auto_enrolment_date == date(2026, 7, 1)
        assert result.ready_to_enrol is True

    def test_default_calendar_used_when_none(self):
        result = auto_enrolment_date(date(2026, 1, 15), None, date(2026, 3, 1))
        assert result.auto_enrolment_date == date(2026, 10, 1)
