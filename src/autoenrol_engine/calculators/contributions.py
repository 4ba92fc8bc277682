"""Phased contribution calculator.

Contribution rates step up every three full years in the scheme:

    Phase 1 (years 1-3):  1.5% + 1.5% + 0.5%
    Phase 2 (years 4-6):  3.0% + 3.0% + 0.5%
    Phase 3 (years 7-9):  4.5% + 4.5% + 0.5%
    Phase 4 (years 10+):  6.0% + 6.0% + 1.5%

(employee + employer + state). Earnings are capped at the upper limit
before any rate is applied, each component is rounded to cents on its
own, and the total is the sum of the rounded components so it always
reconciles with payroll.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from autoenrol_engine.calculators.dates import add_years, full_years_between
from autoenrol_engine.calculators.earnings import (
    PERIODS_PER_YEAR,
    UPPER_EARNINGS_LIMIT,
    parse_pay_frequency,
)
from autoenrol_engine.calculators.money import (
    ZERO,
    percent_of,
    round_to_cents,
    to_decimal,
)
from autoenrol_engine.calculators.types import (
    ContributionBreakdown,
    ContributionResult,
    PayFrequency,
    PhaseContribution,
    RetirementPotProjection,
    TakeHomeImpact,
)
from autoenrol_engine.exceptions import InputError

PHASES = (1, 2, 3, 4)

# (employee %, employer %, state %)
PHASE_RATES: dict[int, tuple[Decimal, Decimal, Decimal]] = {
    1: (Decimal("1.5"), Decimal("1.5"), Decimal("0.5")),
    2: (Decimal("3.0"), Decimal("3.0"), Decimal("0.5")),
    3: (Decimal("4.5"), Decimal("4.5"), Decimal("0.5")),
    4: (Decimal("6.0"), Decimal("6.0"), Decimal("1.5")),
}

# Full years in scheme at which each phase ends.
PHASE_ENDS_AFTER_YEARS: dict[int, int] = {1: 3, 2: 6, 3: 9}

DEFAULT_SALARY_GROWTH = Decimal("0.025")
DEFAULT_INVESTMENT_RETURN = Decimal("0.05")
DEFAULT_MARGINAL_TAX_RATE = Decimal("0.20")
RATE_PLACES = Decimal("0.0001")


def _check_phase(phase: int) -> int:
    if phase not in PHASE_RATES:
        raise InputError("phase", phase, "must be between 1 and 4")
    return phase


def years_in_scheme(enrolment_date: date, assessment_date: date) -> int:
    """Full years elapsed since enrolment."""
    return full_years_between(enrolment_date, assessment_date)


def determine_phase(years: int) -> int:
    """Contribution phase for a number of full years in the scheme."""
    if years < 0:
        raise InputError("years_in_scheme", years, "cannot be negative")
    for phase, ends_after in PHASE_ENDS_AFTER_YEARS.items():
        if years < ends_after:
            return phase
    return 4


def phase_breakdown(
    annual_earnings: Decimal,
    phase: int,
    upper_limit: Decimal = UPPER_EARNINGS_LIMIT,
) -> ContributionBreakdown:
    """Annual contributions for one phase."""
    employee_rate, employer_rate, state_rate = PHASE_RATES[_check_phase(phase)]
    capped = min(to_decimal(annual_earnings), upper_limit)
    employee = percent_of(capped, employee_rate)
    employer = percent_of(capped, employer_rate)
    state = percent_of(capped, state_rate)
    return ContributionBreakdown(
        employee=employee,
        employer=employer,
        state=state,
        total=employee + employer + state,
        employee_rate=employee_rate,
        employer_rate=employer_rate,
        state_rate=state_rate,
    )


def per_period(annual: ContributionBreakdown, frequency: PayFrequency | str) -> ContributionBreakdown:
    """Convert an annual breakdown to one pay period."""
    periods = PERIODS_PER_YEAR[parse_pay_frequency(frequency)]
    if periods == 1:
        return annual
    employee = round_to_cents(annual.employee / periods)
    employer = round_to_cents(annual.employer / periods)
    state = round_to_cents(annual.state / periods)
    return ContributionBreakdown(
        employee=employee,
        employer=employer,
        state=state,
        total=employee + employer + state,
        employee_rate=annual.employee_rate,
        employer_rate=annual.employer_rate,
        state_rate=annual.state_rate,
    )


def calculate(
    annual_earnings: Decimal,
    phase: int,
    pay_frequency: PayFrequency | str = PayFrequency.MONTHLY,
    years_in_scheme: int = 0,
    upper_limit: Decimal = UPPER_EARNINGS_LIMIT,
) -> ContributionResult:
    """Contributions for all four phases, annual and per pay period.

    Raises:
        InputError: If earnings are negative or the phase is not 1-4.
    """
    earnings = to_decimal(annual_earnings)
    if earnings < 0:
        raise InputError("annual_earnings", earnings, "cannot be negative")
    _check_phase(phase)
    frequency = parse_pay_frequency(pay_frequency)
    reckonable = round_to_cents(min(earnings, upper_limit))

    phases = []
    for number in PHASES:
        annual = phase_breakdown(reckonable, number, upper_limit)
        phases.append(
            PhaseContribution(
                phase=number, annual=annual, per_period=per_period(annual, frequency)
            )
        )

    return ContributionResult(
        phases=tuple(phases),
        current_phase=phase,
        years_in_scheme=years_in_scheme,
        pay_frequency=frequency,
        reckonable_earnings=reckonable,
        capped_at_upper_limit=earnings > upper_limit,
    )


def calculate_for_enrolment(
    annual_earnings: Decimal,
    enrolment_date: date,
    assessment_date: date,
    pay_frequency: PayFrequency | str = PayFrequency.MONTHLY,
    upper_limit: Decimal = UPPER_EARNINGS_LIMIT,
) -> ContributionResult:
    """Contributions with the phase taken from time in the scheme."""
    years = years_in_scheme(enrolment_date, assessment_date)
    return calculate(
        annual_earnings, determine_phase(years), pay_frequency, years, upper_limit
    )


def phase_transition_date(enrolment_date: date, phase: int) -> date | None:
    """Date the given phase ends, or None for the final phase."""
    ends_after = PHASE_ENDS_AFTER_YEARS.get(_check_phase(phase))
    if ends_after is None:
        return None
    return add_years(enrolment_date, ends_after)


def phase_description(phase: int) -> str:
    employee, employer, state = PHASE_RATES[_check_phase(phase)]
    first_year = (PHASE_ENDS_AFTER_YEARS.get(phase - 1, 0)) + 1
    last_year = PHASE_ENDS_AFTER_YEARS.get(phase)
    years = f"Years {first_year}-{last_year}" if last_year else f"Years {first_year}+"
    total = employee + employer + state
    return f"Phase {phase} ({years}): {employee}% + {employer}% + {state}% = {total}% total"


def project_retirement_pot(
    annual_earnings: Decimal,
    years: int,
    salary_growth: Decimal = DEFAULT_SALARY_GROWTH,
    investment_return: Decimal = DEFAULT_INVESTMENT_RETURN,
    upper_limit: Decimal = UPPER_EARNINGS_LIMIT,
) -> RetirementPotProjection:
    """Project contributions and pot value over a number of years.

    Each year's contribution grows at the investment return for the
    years remaining until retirement.
    """
    if years < 0:
        raise InputError("years", years, "cannot be negative")
    earnings = to_decimal(annual_earnings)
    if earnings < 0:
        raise InputError("annual_earnings", earnings, "cannot be negative")
    growth = Decimal("1") + to_decimal(salary_growth)
    returns = Decimal("1") + to_decimal(investment_return)

    employee_total = ZERO
    employer_total = ZERO
    state_total = ZERO
    value = ZERO
    for year in range(years):
        contribution = phase_breakdown(earnings, determine_phase(year), upper_limit)
        employee_total += contribution.employee
        employer_total += contribution.employer
        state_total += contribution.state
        value += round_to_cents(contribution.total * returns ** (years - year))
        earnings = round_to_cents(earnings * growth)

    return RetirementPotProjection(
        total_contributions=employee_total + employer_total + state_total,
        employee_contributions=employee_total,
        employer_contributions=employer_total,
        state_contributions=state_total,
        projected_value=value,
    )


def take_home_impact(
    gross_pay: Decimal,
    phase: int,
    marginal_tax_rate: Decimal = DEFAULT_MARGINAL_TAX_RATE,
) -> TakeHomeImpact:
    """Net cost to the employee of their contribution after tax relief."""
    gross = to_decimal(gross_pay)
    if gross < 0:
        raise InputError("gross_pay", gross, "cannot be negative")
    tax_rate = to_decimal(marginal_tax_rate)
    if not ZERO <= tax_rate <= Decimal("1"):
        raise InputError("marginal_tax_rate", tax_rate, "must be between 0 and 1")

    employee_rate = PHASE_RATES[_check_phase(phase)][0]
    contribution = percent_of(gross, employee_rate)
    relief = round_to_cents(contribution * tax_rate)
    net_cost = contribution - relief
    net_rate = (net_cost / gross * 100).quantize(RATE_PLACES) if gross else ZERO
    return TakeHomeImpact(
        gross_contribution=contribution,
        tax_relief=relief,
        net_cost=net_cost,
        net_cost_rate=net_rate,
    )
