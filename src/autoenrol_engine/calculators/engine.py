"""Eligibility engine - main orchestrator."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Iterable

from autoenrol_engine.calculators import contributions
from autoenrol_engine.calculators.classification import PRSIClassifier
from autoenrol_engine.calculators.dates import (
    add_months,
    exact_age,
    full_months_between,
    normalize_date,
    validate_date_of_birth,
)
from autoenrol_engine.calculators.earnings import AnnualizationInput, annualize
from autoenrol_engine.calculators.exclusions import evaluate_exclusions
from autoenrol_engine.calculators.money import WEEKS_PER_YEAR, round_to_cents, to_decimal
from autoenrol_engine.calculators.opt_out import check_window, schedule_re_enrolment
from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import (
    AgeCheck,
    CheckName,
    CheckOutcome,
    ClassificationCheck,
    ContributionResult,
    DurationCheck,
    EarningsCheck,
    EligibilityInput,
    EligibilityResult,
    EligibilitySummary,
    EmploymentStatus,
    EnrolmentType,
    ExclusionCheck,
    OptOutCheck,
    OptOutWindowState,
    PayFrequency,
    ReEnrolmentSchedule,
)
from autoenrol_engine.calculators.variable_earnings import (
    DEFAULT_CONFIG,
    VariableEarningsConfig,
    project_annual_earnings,
)
from autoenrol_engine.config import Settings, get_settings
from autoenrol_engine.exceptions import InputError

logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.0001")


def _money(amount: Decimal) -> str:
    return f"EUR {amount:,.2f}"


class EligibilityEngine:
    """Auto-enrolment eligibility engine.

    Checks run in a fixed order and never short-circuit, so every result
    carries a complete reasons trail:
    1) Age within the statutory band (exact-day)
    2) PRSI classification
    3) Earnings, annualized or projected from history
    4) Employment duration against the waiting period
    5) Opt-out / re-enrolment status
    6) Director, shareholding and self-employment exclusions
    7) Employment status is ACTIVE

    The employee is eligible only if every check passes. Eligible
    employees with an enrolment date also get their phased contributions.

    The assessment date is resolved once per call and passed down; no
    helper reads the clock.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        staging: StagingCalendar | None = None,
        projection_config: VariableEarningsConfig = DEFAULT_CONFIG,
    ):
        self.settings = settings or get_settings()
        self.staging = staging
        self.projection_config = projection_config

    def assess(
        self, employee: EligibilityInput, assessment_date: date | None = None
    ) -> EligibilityResult:
        """Assess one employee.

        Raises:
            InputError: If the record is malformed (negative pay, birth
                after the assessment date, opt-out flag without a date,
                shareholding outside [0, 1]).
        """
        as_of = normalize_date(assessment_date or employee.assessment_date or date.today())

        self._validate(employee)

        warnings = validate_date_of_birth(employee.date_of_birth, as_of)

        age_check = self._check_age(employee, as_of)
        earnings_check, classification_income = self._check_earnings(employee)
        warnings.extend(earnings_check.projection.warnings if earnings_check.projection else ())
        classification_check = self._check_classification(
            employee, classification_income, as_of
        )
        duration_check = self._check_duration(employee, as_of)
        opt_out_check = self._check_opt_out(employee, as_of)
        exclusion_check = self._check_exclusions(employee)
        status_passed = employee.employment_status == EmploymentStatus.ACTIVE
        status_reason = (
            "Employment status is ACTIVE"
            if status_passed
            else f"Employment status is {EmploymentStatus(employee.employment_status).value} "
            "(must be ACTIVE)"
        )

        checks = (
            CheckOutcome(CheckName.AGE, age_check.passed, age_check.reason),
            CheckOutcome(
                CheckName.CLASSIFICATION,
                classification_check.passed,
                classification_check.reason,
            ),
            CheckOutcome(CheckName.EARNINGS, earnings_check.passed, earnings_check.reason),
            CheckOutcome(CheckName.DURATION, duration_check.passed, duration_check.reason),
            CheckOutcome(CheckName.OPT_OUT, opt_out_check.passed, opt_out_check.reason),
            CheckOutcome(CheckName.EXCLUSION, exclusion_check.passed, exclusion_check.reason),
            CheckOutcome(CheckName.EMPLOYMENT_STATUS, status_passed, status_reason),
        )
        is_eligible = all(check.passed for check in checks)

        contribution_details: ContributionResult | None = None
        if is_eligible and employee.enrolment_date is not None:
            contribution_details = contributions.calculate_for_enrolment(
                earnings_check.annual_earnings,
                employee.enrolment_date,
                as_of,
                employee.pay_frequency,
                self.settings.upper_earnings_limit,
            )

        waiting_end = add_months(
            normalize_date(employee.employment_start_date),
            self.settings.waiting_period_months,
        )
        eligibility_date: date | None = None
        next_review_date: date | None = None
        if is_eligible:
            eligibility_date = waiting_end
        elif not duration_check.passed:
            eligibility_date = waiting_end
            next_review_date = waiting_end
        if not opt_out_check.passed and opt_out_check.re_enrolment is not None:
            re_enrol_on = opt_out_check.re_enrolment.next_re_enrolment_date
            next_review_date = max(next_review_date or re_enrol_on, re_enrol_on)

        auto_enrolment_date: date | None = None
        other_checks_pass = all(
            check.passed for check in checks if check.name != CheckName.DURATION
        )
        if self.staging is not None and other_checks_pass:
            auto_enrolment_date = self.staging.next_on_or_after(waiting_end)

        logger.debug(
            "Assessed employee %s on %s: eligible=%s",
            employee.employee_id,
            as_of.isoformat(),
            is_eligible,
        )

        return EligibilityResult(
            employee_id=employee.employee_id,
            assessment_date=as_of,
            is_eligible=is_eligible,
            reasons=tuple(check.reason for check in checks),
            checks=checks,
            age_check=age_check,
            classification_check=classification_check,
            earnings_check=earnings_check,
            duration_check=duration_check,
            opt_out_check=opt_out_check,
            exclusion_check=exclusion_check,
            eligibility_date=eligibility_date,
            next_review_date=next_review_date,
            auto_enrolment_date=auto_enrolment_date,
            contribution_details=contribution_details,
            warnings=tuple(warnings),
        )

    def assess_batch(
        self, employees: Iterable[EligibilityInput], assessment_date: date | None = None
    ) -> list[EligibilityResult]:
        """Assess employees sequentially; see BatchAssessmentService for fan-out."""
        as_of = assessment_date or date.today()
        return [self.assess(employee, as_of) for employee in employees]

    def is_qualifying(
        self, employee: EligibilityInput, assessment_date: date | None = None
    ) -> bool:
        return self.assess(employee, assessment_date).is_eligible

    def auto_enrolment_date_for(
        self, employee: EligibilityInput, assessment_date: date | None = None
    ) -> date | None:
        """Date the employee is (or was) auto-enrolled, if eligible."""
        result = self.assess(employee, assessment_date)
        if not result.is_eligible:
            return None
        return result.auto_enrolment_date or result.eligibility_date

    @staticmethod
    def summarize(results: Iterable[EligibilityResult]) -> EligibilitySummary:
        """Counts and failure reasons across a set of results."""
        results = list(results)
        eligible = sum(1 for result in results if result.is_eligible)
        reason_counts: Counter[str] = Counter()
        for result in results:
            if result.is_eligible:
                continue
            for check in result.checks:
                if not check.passed:
                    reason_counts[check.reason] += 1

        total = len(results)
        rate = (Decimal(eligible) / Decimal(total)).quantize(RATE_PLACES) if total else Decimal("0")
        return EligibilitySummary(
            total=total,
            eligible=eligible,
            ineligible=total - eligible,
            eligibility_rate=rate,
            reason_counts=dict(reason_counts),
        )

    def _validate(self, employee: EligibilityInput) -> None:
        """Reject malformed values before any check runs."""
        earnings = to_decimal(employee.earnings)
        if earnings < 0:
            raise InputError("earnings", earnings, "cannot be negative")
        shareholding = to_decimal(employee.shareholding)
        if not Decimal("0") <= shareholding <= Decimal("1"):
            raise InputError("shareholding", shareholding, "must be between 0 and 1")
        if employee.has_opted_out and employee.opt_out_date is None:
            raise InputError("opt_out_date", None, "required when has_opted_out is set")

    # -------------------------------------------------------------------------
    # Individual checks
    # -------------------------------------------------------------------------

    def _check_age(self, employee: EligibilityInput, as_of: date) -> AgeCheck:
        age = exact_age(employee.date_of_birth, as_of)
        minimum = self.settings.minimum_age
        maximum = self.settings.maximum_age
        if age < minimum:
            return AgeCheck(False, age, f"Employee age ({age}) is below minimum ({minimum})")
        if age > maximum:
            return AgeCheck(False, age, f"Employee age ({age}) exceeds maximum ({maximum})")
        return AgeCheck(True, age, f"Age requirement met ({age} years)")

    def _check_earnings(self, employee: EligibilityInput) -> tuple[EarningsCheck, Decimal]:
        """Return the earnings check and the annual income used for PRSI."""
        minimum = self.settings.minimum_earnings
        upper = self.settings.upper_earnings_limit
        earnings = to_decimal(employee.earnings)

        if employee.earnings_history:
            annual_salary = earnings if employee.pay_frequency == PayFrequency.ANNUAL else None
            projection = project_annual_earnings(
                employee.earnings_history, annual_salary, self.projection_config
            )
            annual = projection.projected_annual
            if not projection.is_reliable:
                classification_income = round_to_cents(projection.avg_monthly * 12)
                check = EarningsCheck(
                    passed=False,
                    annual_earnings=annual,
                    reckonable_earnings=min(annual, upper),
                    reason=(
                        "Earnings history too short to project annual earnings "
                        f"({projection.months_of_data} months of data)"
                    ),
                    projection=projection,
                )
                return check, classification_income
            reckonable = min(annual, upper)
            passed = annual >= minimum
            return (
                EarningsCheck(
                    passed=passed,
                    annual_earnings=annual,
                    reckonable_earnings=reckonable,
                    reason=self._earnings_reason(passed, annual, reckonable),
                    projection=projection,
                ),
                annual,
            )

        annualized = annualize(
            AnnualizationInput(
                gross_pay=earnings,
                pay_frequency=employee.pay_frequency,
                hours_per_week=employee.hours_per_week,
                contract_type=employee.contract_type,
                weeks_worked=employee.weeks_worked,
            ),
            minimum_threshold=minimum,
            upper_limit=upper,
        )
        passed = annualized.meets_minimum_threshold
        return (
            EarningsCheck(
                passed=passed,
                annual_earnings=annualized.annual_earnings,
                reckonable_earnings=annualized.reckonable_earnings,
                reason=self._earnings_reason(
                    passed, annualized.annual_earnings, annualized.reckonable_earnings
                ),
                annualized=annualized,
            ),
            annualized.annual_earnings,
        )

    def _earnings_reason(self, passed: bool, annual: Decimal, reckonable: Decimal) -> str:
        if passed:
            return f"Earnings requirement met ({_money(reckonable)} reckonable)"
        return (
            f"Annual earnings ({_money(annual)}) below minimum threshold "
            f"({_money(self.settings.minimum_earnings)})"
        )

    def _check_classification(
        self, employee: EligibilityInput, annual_income: Decimal, as_of: date
    ) -> ClassificationCheck:
        result = PRSIClassifier.classify(
            date_of_birth=employee.date_of_birth,
            employment_start_date=employee.employment_start_date,
            employment_type=employee.employment_type,
            weekly_earnings=round_to_cents(annual_income / WEEKS_PER_YEAR),
            annual_income=annual_income,
            assessment_date=as_of,
        )
        cls = result.prsi_class.value
        if result.eligible_for_auto_enrolment:
            reason = f"PRSI Class {cls} is eligible"
        else:
            reason = f"PRSI Class {cls} is not eligible for auto-enrolment ({result.reason})"
        return ClassificationCheck(
            passed=result.eligible_for_auto_enrolment,
            prsi_class=result.prsi_class,
            reason=reason,
            result=result,
        )

    def _check_duration(self, employee: EligibilityInput, as_of: date) -> DurationCheck:
        months = full_months_between(employee.employment_start_date, as_of)
        waiting = self.settings.waiting_period_months
        if months >= waiting:
            return DurationCheck(True, months, f"Employment duration requirement met ({months} months)")
        return DurationCheck(
            False,
            months,
            f"Employment duration ({months} months) less than required "
            f"{waiting}-month waiting period",
        )

    def _check_opt_out(self, employee: EligibilityInput, as_of: date) -> OptOutCheck:
        interval = self.settings.re_enrolment_interval_years

        if employee.has_opted_out:
            schedule: ReEnrolmentSchedule = schedule_re_enrolment(
                employee.opt_out_date, as_of, self.staging, interval
            )
            if schedule.is_due:
                return OptOutCheck(
                    passed=True,
                    reason=f"Re-enrolment is due ({interval} years since opt-out)",
                    re_enrolment=schedule,
                )
            return OptOutCheck(
                passed=False,
                reason=(
                    "Employee has opted out and re-enrolment is not due until "
                    f"{schedule.next_re_enrolment_date.isoformat()}"
                ),
                re_enrolment=schedule,
            )

        if employee.enrolment_date is not None:
            enrolment_type = employee.enrolment_type or (
                EnrolmentType.RE_ENROLMENT if employee.opt_out_date else EnrolmentType.INITIAL
            )
            window = check_window(employee.enrolment_date, enrolment_type, as_of)
            if window.state == OptOutWindowState.OPEN:
                reason = f"Opt-out window is open ({window.days_remaining} days remaining)"
            elif window.state == OptOutWindowState.BEFORE_WINDOW:
                reason = f"Opt-out window opens on {window.window_open_date.isoformat()}"
            else:
                reason = f"Opt-out window closed on {window.window_close_date.isoformat()}"
            return OptOutCheck(passed=True, reason=reason, window=window)

        return OptOutCheck(passed=True, reason="No opt-out on record")

    def _check_exclusions(self, employee: EligibilityInput) -> ExclusionCheck:
        if not employee.has_director_attributes:
            return ExclusionCheck(passed=True, reason="Not a director or shareholder")

        result = evaluate_exclusions(
            director_type=employee.director_type,
            shareholding=employee.shareholding,
            classification=employee.employment_classification,
            family=employee.family_shareholding,
            control=employee.control_indicators,
        )
        if result.is_excluded:
            return ExclusionCheck(
                passed=False, reason="; ".join(result.exclusion_reasons), result=result
            )
        return ExclusionCheck(
            passed=True, reason="Not excluded as director or shareholder", result=result
        )
