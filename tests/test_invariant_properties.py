"""Property-based tests for calculation invariants.

These use hypothesis to generate dates and amounts across the whole input
range and verify that the rules hold everywhere, not only at the
hand-picked examples in the unit tests.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import assume, given, settings, strategies as st

from autoenrol_engine.calculators.contributions import PHASES, calculate, phase_breakdown
from autoenrol_engine.calculators.dates import add_years, exact_age
from autoenrol_engine.calculators.earnings import (
    UPPER_EARNINGS_LIMIT,
    AnnualizationInput,
    annualize,
    deannualize,
)
from autoenrol_engine.calculators.opt_out import check_window
from autoenrol_engine.calculators.types import EnrolmentType, OptOutWindowState, PayFrequency

births = st.dates(min_value=date(1930, 1, 1), max_value=date(2010, 12, 31))
amounts = st.decimals(min_value=Decimal("0"), max_value=Decimal("80000"), places=2)
frequencies = st.sampled_from(list(PayFrequency))


# =============================================================================
# Age
# =============================================================================

class TestAgeProperties:
    """Age never decreases and changes only on birthdays."""

    @given(birth=births, offset=st.integers(min_value=0, max_value=40000))
    def test_age_is_monotone(self, birth, offset):
        reference = birth + timedelta(days=offset)
        assume(reference < date(9999, 1, 1))
        assert exact_age(birth, reference) <= exact_age(birth, reference + timedelta(days=1))

    @given(birth=births, years=st.integers(min_value=1, max_value=90))
    def test_age_increments_on_birthday(self, birth, years):
        assume(not (birth.month == 2 and birth.day == 29))
        birthday = add_years(birth, years)
        assert exact_age(birth, birthday) == years
        assert exact_age(birth, birthday - timedelta(days=1)) == years - 1


# =============================================================================
# Earnings
# =============================================================================

class TestEarningsProperties:
    """Annualization is reversible to the cent and never exceeds the cap."""

    @given(gross=st.decimals(min_value=Decimal("0"), max_value=Decimal("50000"), places=2),
           frequency=frequencies)
    def test_deannualize_reverses_annualize(self, gross, frequency):
        annual = annualize(AnnualizationInput(gross, frequency)).annual_earnings
        assert abs(deannualize(annual, frequency) - gross) <= Decimal("0.01")

    @given(gross=st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2),
           frequency=frequencies)
    def test_reckonable_never_exceeds_cap(self, gross, frequency):
        result = annualize(AnnualizationInput(gross, frequency))
        assert result.reckonable_earnings <= UPPER_EARNINGS_LIMIT
        assert result.reckonable_earnings <= result.annual_earnings


# =============================================================================
# Contributions
# =============================================================================

class TestContributionProperties:
    """Totals always reconcile with their rounded components."""

    @given(earnings=amounts, phase=st.sampled_from(PHASES))
    def test_annual_total_reconciles(self, earnings, phase):
        result = phase_breakdown(earnings, phase)
        assert result.total == result.employee + result.employer + result.state

    @settings(max_examples=50)
    @given(earnings=amounts, frequency=frequencies)
    def test_per_period_totals_reconcile(self, earnings, frequency):
        for entry in calculate(earnings, 1, frequency).phases:
            per_period = entry.per_period
            assert per_period.total == per_period.employee + per_period.employer + per_period.state

    @given(earnings=amounts)
    def test_contributions_rise_with_phase(self, earnings):
        totals = [phase_breakdown(earnings, phase).total for phase in PHASES]
        assert totals == sorted(totals)


# =============================================================================
# Opt-out windows
# =============================================================================

class TestOptOutWindowProperties:
    """Window boundaries are inclusive on both ends."""

    @given(
        enrolment=st.dates(min_value=date(2026, 1, 1), max_value=date(2040, 12, 31)),
        enrolment_type=st.sampled_from(list(EnrolmentType)),
    )
    def test_boundaries(self, enrolment, enrolment_type):
        probe = check_window(enrolment, enrolment_type, enrolment)
        open_date = probe.window_open_date
        close_date = probe.window_close_date

        assert check_window(enrolment, enrolment_type, open_date).state == OptOutWindowState.OPEN
        assert check_window(enrolment, enrolment_type, close_date).state == OptOutWindowState.OPEN
        assert (
            check_window(enrolment, enrolment_type, open_date - timedelta(days=1)).state
            == OptOutWindowState.BEFORE_WINDOW
        )
        assert (
            check_window(enrolment, enrolment_type, close_date + timedelta(days=1)).state
            == OptOutWindowState.EXPIRED
        )
