"""Pydantic schemas for employee records and engine results."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import (
    CheckName,
    ContractType,
    ContributionRecord,
    ControlIndicators,
    DirectorType,
    EarningsConfidence,
    EligibilityInput,
    EligibilityResult,
    EmploymentClassification,
    EmploymentStatus,
    EmploymentType,
    EnrolmentType,
    FamilyShareholding,
    MonthlyEarnings,
    OptOutWindowState,
    PayFrequency,
    PRSIClass,
    ProjectionMethod,
    StagingFrequency,
    TrendDirection,
)


# ============================================================================
# Input schemas
# ============================================================================


class MonthlyEarningsRecord(BaseModel):
    """One month of payroll history."""

    month: str = Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    gross: Decimal
    hours: Decimal | None = None
    overtime: Decimal | None = None
    bonus: Decimal | None = None
    commission: Decimal | None = None

    def to_domain(self) -> MonthlyEarnings:
        return MonthlyEarnings(
            month=self.month,
            gross=self.gross,
            hours=self.hours,
            overtime=self.overtime,
            bonus=self.bonus,
            commission=self.commission,
        )


class FamilyShareholdingRecord(BaseModel):
    """Holdings of connected persons, as fractions."""

    spouse: Decimal = Decimal("0")
    children: Decimal = Decimal("0")
    parents: Decimal = Decimal("0")


class ControlIndicatorsRecord(BaseModel):
    """De facto control indicators for a director."""

    is_sole_director: bool = False
    controls_board_majority: bool = False
    has_veto_rights: bool = False
    has_voting_rights_agreement: bool = False
    is_managing_director: bool = False


class EmployeeRecord(BaseModel):
    """Schema for an employee submitted for assessment."""

    employee_id: str
    date_of_birth: date
    employment_start_date: date
    earnings: Decimal
    pay_frequency: PayFrequency
    employment_type: EmploymentType = EmploymentType.PRIVATE_SECTOR
    hours_per_week: Decimal | None = None
    contract_type: ContractType = ContractType.FULL_TIME
    weeks_worked: Decimal | None = None
    has_opted_out: bool = False
    opt_out_date: date | None = None
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    director_type: DirectorType = DirectorType.NONE
    shareholding: Decimal = Decimal("0")
    family_shareholding: FamilyShareholdingRecord | None = None
    control_indicators: ControlIndicatorsRecord | None = None
    employment_classification: EmploymentClassification = EmploymentClassification.EMPLOYEE
    enrolment_date: date | None = None
    enrolment_type: EnrolmentType | None = None
    earnings_history: list[MonthlyEarningsRecord] = Field(default_factory=list)

    def to_input(self, assessment_date: date | None = None) -> EligibilityInput:
        """Convert to the engine's input type."""
        family = None
        if self.family_shareholding is not None:
            family = FamilyShareholding(**self.family_shareholding.model_dump())
        control = None
        if self.control_indicators is not None:
            control = ControlIndicators(**self.control_indicators.model_dump())

        return EligibilityInput(
            employee_id=self.employee_id,
            date_of_birth=self.date_of_birth,
            employment_start_date=self.employment_start_date,
            earnings=self.earnings,
            pay_frequency=self.pay_frequency,
            employment_type=self.employment_type,
            hours_per_week=self.hours_per_week,
            contract_type=self.contract_type,
            weeks_worked=self.weeks_worked,
            has_opted_out=self.has_opted_out,
            opt_out_date=self.opt_out_date,
            employment_status=self.employment_status,
            director_type=self.director_type,
            shareholding=self.shareholding,
            family_shareholding=family,
            control_indicators=control,
            employment_classification=self.employment_classification,
            enrolment_date=self.enrolment_date,
            enrolment_type=self.enrolment_type,
            earnings_history=tuple(month.to_domain() for month in self.earnings_history),
            assessment_date=assessment_date,
        )


class StagingCalendarConfig(BaseModel):
    """Schema for an employer staging calendar."""

    frequency: StagingFrequency = StagingFrequency.QUARTERLY
    days: list[int] = Field(default_factory=lambda: [1])
    effective_from: date | None = None
    effective_to: date | None = None

    def to_calendar(self) -> StagingCalendar:
        return StagingCalendar(
            frequency=self.frequency,
            days=tuple(self.days),
            effective_from=self.effective_from,
            effective_to=self.effective_to,
        )


class ContributionRecordIn(BaseModel):
    """A contribution already deducted, used for opt-out refunds."""

    paid_on: date
    employee_amount: Decimal
    employer_amount: Decimal
    state_amount: Decimal = Decimal("0")

    def to_domain(self) -> ContributionRecord:
        return ContributionRecord(
            paid_on=self.paid_on,
            employee_amount=self.employee_amount,
            employer_amount=self.employer_amount,
            state_amount=self.state_amount,
        )


# ============================================================================
# Contribution schemas
# ============================================================================


class ContributionBreakdownResponse(BaseModel):
    """Schema for one set of employee/employer/state amounts."""

    model_config = ConfigDict(from_attributes=True)

    employee: Decimal
    employer: Decimal
    state: Decimal
    total: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    state_rate: Decimal


class PhaseContributionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    phase: int
    annual: ContributionBreakdownResponse
    per_period: ContributionBreakdownResponse


class ContributionResultResponse(BaseModel):
    """Schema for contributions across all phases."""

    model_config = ConfigDict(from_attributes=True)

    phases: list[PhaseContributionResponse]
    current_phase: int
    years_in_scheme: int
    pay_frequency: PayFrequency
    reckonable_earnings: Decimal
    capped_at_upper_limit: bool


class RetirementPotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_contributions: Decimal
    employee_contributions: Decimal
    employer_contributions: Decimal
    state_contributions: Decimal
    projected_value: Decimal


# ============================================================================
# Opt-out schemas
# ============================================================================


class OptOutWindowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    enrolment_type: EnrolmentType
    state: OptOutWindowState
    window_open_date: date
    window_close_date: date
    days_remaining: int


class ReEnrolmentScheduleResponse(BaseModel):
    """Schema for the next re-enrolment after an opt-out."""

    model_config = ConfigDict(from_attributes=True)

    last_opt_out_date: date
    next_re_enrolment_date: date
    opt_out_window_open_date: date
    opt_out_window_close_date: date
    years_since_opt_out: int
    days_until: int
    is_due: bool


class RefundResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_refund: Decimal
    employer_refund: Decimal
    total_refund: Decimal
    contribution_count: int


class OptOutDecisionResponse(BaseModel):
    """Schema for an opt-out request decision."""

    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    window: OptOutWindowResponse
    reason: str | None = None
    refund: RefundResponse | None = None
    re_enrolment: ReEnrolmentScheduleResponse | None = None


# ============================================================================
# Eligibility schemas
# ============================================================================


class CheckOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: CheckName
    passed: bool
    reason: str


class EarningsProjectionResponse(BaseModel):
    """Schema for an earnings projection from payroll history."""

    model_config = ConfigDict(from_attributes=True)

    projected_annual: Decimal
    confidence: EarningsConfidence
    months_of_data: int
    method: ProjectionMethod
    variance: Decimal
    min_monthly: Decimal
    max_monthly: Decimal
    avg_monthly: Decimal
    trend_direction: TrendDirection
    seasonality_detected: bool
    warnings: list[str]


class EligibilityResultResponse(BaseModel):
    """Schema for an eligibility assessment."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    assessment_date: date
    is_eligible: bool
    reasons: list[str]
    checks: list[CheckOutcomeResponse]
    age: int
    prsi_class: PRSIClass
    annual_earnings: Decimal
    reckonable_earnings: Decimal
    months_employed: int
    earnings_projection: EarningsProjectionResponse | None = None
    opt_out_window: OptOutWindowResponse | None = None
    re_enrolment: ReEnrolmentScheduleResponse | None = None
    exclusion_reasons: list[str] = Field(default_factory=list)
    eligibility_date: date | None = None
    next_review_date: date | None = None
    auto_enrolment_date: date | None = None
    contribution_details: ContributionResultResponse | None = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: EligibilityResult) -> "EligibilityResultResponse":
        """Flatten an engine result into the response shape."""
        exclusion = result.exclusion_check.result
        return cls.model_validate(
            {
                "employee_id": result.employee_id,
                "assessment_date": result.assessment_date,
                "is_eligible": result.is_eligible,
                "reasons": list(result.reasons),
                "checks": list(result.checks),
                "age": result.age_check.age,
                "prsi_class": result.classification_check.prsi_class,
                "annual_earnings": result.earnings_check.annual_earnings,
                "reckonable_earnings": result.earnings_check.reckonable_earnings,
                "months_employed": result.duration_check.months_employed,
                "earnings_projection": result.earnings_check.projection,
                "opt_out_window": result.opt_out_check.window,
                "re_enrolment": result.opt_out_check.re_enrolment,
                "exclusion_reasons": list(exclusion.exclusion_reasons) if exclusion else [],
                "eligibility_date": result.eligibility_date,
                "next_review_date": result.next_review_date,
                "auto_enrolment_date": result.auto_enrolment_date,
                "contribution_details": result.contribution_details,
                "warnings": list(result.warnings),
            },
            from_attributes=True,
        )


class EligibilitySummaryResponse(BaseModel):
    """Schema for a batch summary."""

    model_config = ConfigDict(from_attributes=True)

    total: int
    eligible: int
    ineligible: int
    eligibility_rate: Decimal
    reason_counts: dict[str, int]


class BatchErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    error: str


class BatchAssessmentResponse(BaseModel):
    """Schema for a batch of assessments."""

    assessment_date: date
    results: list[EligibilityResultResponse]
    errors: list[BatchErrorResponse]
    summary: EligibilitySummaryResponse
