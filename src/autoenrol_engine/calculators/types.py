"""Type definitions for the eligibility and contribution pipeline.

All values are immutable and built fresh on every call. Money is
Decimal in currency units (euro, two places), rates are percentages
(Decimal("1.5") is 1.5%) and shareholdings are fractions in [0, 1].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from autoenrol_engine.exceptions import InputError


class PayFrequency(str, Enum):
    """Pay cadences accepted by the annualizer."""

    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    FOUR_WEEKLY = "four_weekly"
    MONTHLY = "monthly"
    ANNUAL = "annual"


class ContractType(str, Enum):
    """Working pattern; only part-time contracts are pro-rated by hours."""

    FULL_TIME = "full_time"
    PART_TIME = "part_time"


class EmploymentType(str, Enum):
    """Employment categories that drive PRSI classification."""

    PRIVATE_SECTOR = "private_sector"
    PUBLIC_SECTOR_POST_1995 = "public_sector_post_1995"
    PUBLIC_SECTOR_PRE_1995 = "public_sector_pre_1995"
    DEFENCE_FORCES_OFFICER = "defence_forces_officer"
    DEFENCE_FORCES_NON_OFFICER = "defence_forces_non_officer"
    GARDA_OFFICER = "garda_officer"
    HEALTH_BOARD = "health_board"
    SELF_EMPLOYED = "self_employed"
    SHARE_FISHERMAN = "share_fisherman"


class EmploymentStatus(str, Enum):
    """Employment status values."""

    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class PRSIClass(str, Enum):
    """Pay Related Social Insurance classes."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    H = "H"
    J = "J"
    K = "K"
    M = "M"
    P = "P"
    S = "S"


class EarningsConfidence(str, Enum):
    """How far a projected annual figure can be trusted."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INSUFFICIENT = "INSUFFICIENT"


class ProjectionMethod(str, Enum):
    ACTUAL = "ACTUAL"
    EXTRAPOLATED = "EXTRAPOLATED"
    AVERAGE_BASED = "AVERAGE_BASED"


class TrendDirection(str, Enum):
    INCREASING = "INCREASING"
    DECREASING = "DECREASING"
    STABLE = "STABLE"


class DirectorType(str, Enum):
    """Director roles relevant to the exclusion rules."""

    NONE = "none"
    EXECUTIVE = "executive"
    NON_EXECUTIVE = "non_executive"
    SHADOW = "shadow"


class EmploymentClassification(str, Enum):
    """Legal relationship between the worker and the employer."""

    EMPLOYEE = "employee"
    SELF_EMPLOYED = "self_employed"
    PARTNER = "partner"
    CONTRACTOR = "contractor"
    CONTROLLING_DIRECTOR = "controlling_director"


class EnrolmentType(str, Enum):
    INITIAL = "initial"
    RE_ENROLMENT = "re_enrolment"


class OptOutWindowState(str, Enum):
    """Opt-out window states, derived purely from elapsed time."""

    BEFORE_WINDOW = "before_window"
    OPEN = "open"
    EXPIRED = "expired"


class StagingFrequency(str, Enum):
    """How often an employer processes enrolments."""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    BI_ANNUALLY = "BI_ANNUALLY"
    ANNUALLY = "ANNUALLY"


class CheckName(str, Enum):
    """Eligibility checks, in evaluation order."""

    AGE = "age"
    CLASSIFICATION = "classification"
    EARNINGS = "earnings"
    DURATION = "duration"
    OPT_OUT = "opt_out"
    EXCLUSION = "exclusion"
    EMPLOYMENT_STATUS = "employment_status"


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class MonthlyEarnings:
    """One month of payroll history."""

    month: str  # YYYY-MM
    gross: Decimal
    hours: Decimal | None = None
    overtime: Decimal | None = None
    bonus: Decimal | None = None
    commission: Decimal | None = None

    def __post_init__(self) -> None:
        """Validate month format and amount."""
        parts = self.month.split("-")
        if (
            len(parts) != 2
            or len(parts[0]) != 4
            or not parts[0].isdigit()
            or not parts[1].isdigit()
            or not 1 <= int(parts[1]) <= 12
        ):
            raise InputError("month", self.month, "expected YYYY-MM")
        if self.gross < 0:
            raise InputError("gross", self.gross, "cannot be negative")


@dataclass(frozen=True)
class FamilyShareholding:
    """Holdings of connected persons, as fractions of the company."""

    spouse: Decimal = Decimal("0")
    children: Decimal = Decimal("0")
    parents: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        """Validate each holding is a fraction."""
        for name in ("spouse", "children", "parents"):
            value = getattr(self, name)
            if not Decimal("0") <= value <= Decimal("1"):
                raise InputError(f"{name}_shareholding", value, "must be between 0 and 1")

    @property
    def has_related_holdings(self) -> bool:
        return any((self.spouse, self.children, self.parents))


@dataclass(frozen=True)
class ControlIndicators:
    """Facts that give a director control without a majority holding."""

    is_sole_director: bool = False
    controls_board_majority: bool = False
    has_veto_rights: bool = False
    has_voting_rights_agreement: bool = False
    is_managing_director: bool = False


@dataclass(frozen=True)
class ContributionRecord:
    """A contribution actually paid into the scheme."""

    paid_on: date
    employee_amount: Decimal
    employer_amount: Decimal
    state_amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class EligibilityInput:
    """A normalized, validated employee record."""

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

    # Director / shareholding attributes
    director_type: DirectorType = DirectorType.NONE
    shareholding: Decimal = Decimal("0")
    family_shareholding: FamilyShareholding | None = None
    control_indicators: ControlIndicators | None = None
    employment_classification: EmploymentClassification = EmploymentClassification.EMPLOYEE

    # Enrolment state
    enrolment_date: date | None = None
    enrolment_type: EnrolmentType | None = None

    # Variable pay history (used instead of a single earnings figure)
    earnings_history: tuple[MonthlyEarnings, ...] = ()

    assessment_date: date | None = None

    @property
    def has_director_attributes(self) -> bool:
        return (
            self.director_type != DirectorType.NONE
            or self.shareholding > 0
            or self.employment_classification != EmploymentClassification.EMPLOYEE
            or self.family_shareholding is not None
            or self.control_indicators is not None
        )


# =============================================================================
# Component results
# =============================================================================


@dataclass(frozen=True)
class ClassificationResult:
    """PRSI class and whether it qualifies for auto-enrolment."""

    prsi_class: PRSIClass
    eligible_for_auto_enrolment: bool
    reason: str
    age: int
    employee_rate: Decimal
    employer_rate: Decimal
    mandatory: bool


@dataclass(frozen=True)
class AnnualizedEarnings:
    """Earnings converted to an annual basis."""

    gross_pay: Decimal
    pay_frequency: PayFrequency
    annual_earnings: Decimal
    weekly_earnings: Decimal
    monthly_earnings: Decimal
    reckonable_earnings: Decimal
    meets_minimum_threshold: bool
    exceeds_upper_limit: bool
    pro_rata_factor: Decimal


@dataclass(frozen=True)
class VariableEarningsResult:
    """Projected annual earnings with the statistics behind them."""

    projected_annual: Decimal
    confidence: EarningsConfidence
    months_of_data: int
    data_points: tuple[MonthlyEarnings, ...]
    method: ProjectionMethod
    variance: Decimal  # coefficient of variation
    min_monthly: Decimal
    max_monthly: Decimal
    avg_monthly: Decimal
    trend_direction: TrendDirection
    seasonality_detected: bool
    warnings: tuple[str, ...] = ()

    @property
    def is_reliable(self) -> bool:
        return self.confidence != EarningsConfidence.INSUFFICIENT


@dataclass(frozen=True)
class ShareholdingDetails:
    personal: Decimal
    family: Decimal
    exceeds_threshold: bool
    threshold: Decimal


@dataclass(frozen=True)
class ExclusionResult:
    """Every exclusion that applies, in rule order."""

    is_excluded: bool
    exclusion_reasons: tuple[str, ...]
    classification: EmploymentClassification
    shareholding: ShareholdingDetails

    @property
    def exclusion_reason(self) -> str | None:
        return self.exclusion_reasons[0] if self.exclusion_reasons else None

    @property
    def is_eligible(self) -> bool:
        return not self.is_excluded


@dataclass(frozen=True)
class OptOutWindowStatus:
    """Where an assessment date falls relative to an opt-out window."""

    enrolment_type: EnrolmentType
    state: OptOutWindowState
    window_open_date: date
    window_close_date: date
    days_remaining: int

    @property
    def is_within_window(self) -> bool:
        return self.state == OptOutWindowState.OPEN

    @property
    def waiting_period_complete(self) -> bool:
        return self.state != OptOutWindowState.BEFORE_WINDOW

    @property
    def window_expired(self) -> bool:
        return self.state == OptOutWindowState.EXPIRED


@dataclass(frozen=True)
class ReEnrolmentSchedule:
    """Next automatic re-enrolment after an opt-out."""

    last_opt_out_date: date
    next_re_enrolment_date: date
    opt_out_window_open_date: date
    opt_out_window_close_date: date
    years_since_opt_out: int
    days_until: int
    is_due: bool


@dataclass(frozen=True)
class RefundBreakdown:
    """Contributions returned on a valid opt-out; state money is kept."""

    employee_refund: Decimal
    employer_refund: Decimal
    contribution_count: int

    @property
    def total_refund(self) -> Decimal:
        return self.employee_refund + self.employer_refund


@dataclass(frozen=True)
class OptOutDecision:
    """Outcome of an opt-out request."""

    is_valid: bool
    window: OptOutWindowStatus
    reason: str | None = None
    refund: RefundBreakdown | None = None
    re_enrolment: ReEnrolmentSchedule | None = None


@dataclass(frozen=True)
class ContributionBreakdown:
    """Employee, employer and state amounts for one period."""

    employee: Decimal
    employer: Decimal
    state: Decimal
    total: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    state_rate: Decimal

    def __post_init__(self) -> None:
        """Total must reconcile to the rounded components."""
        if self.total != self.employee + self.employer + self.state:
            raise ValueError(
                f"Contribution total {self.total} does not equal component sum"
            )


@dataclass(frozen=True)
class PhaseContribution:
    phase: int
    annual: ContributionBreakdown
    per_period: ContributionBreakdown


@dataclass(frozen=True)
class ContributionResult:
    """Contributions for all four phases, annual and per pay period."""

    phases: tuple[PhaseContribution, ...]
    current_phase: int
    years_in_scheme: int
    pay_frequency: PayFrequency
    reckonable_earnings: Decimal
    capped_at_upper_limit: bool

    def for_phase(self, phase: int) -> PhaseContribution:
        for entry in self.phases:
            if entry.phase == phase:
                return entry
        raise InputError("phase", phase, "must be between 1 and 4")

    @property
    def current(self) -> PhaseContribution:
        return self.for_phase(self.current_phase)


@dataclass(frozen=True)
class RetirementPotProjection:
    total_contributions: Decimal
    employee_contributions: Decimal
    employer_contributions: Decimal
    state_contributions: Decimal
    projected_value: Decimal


@dataclass(frozen=True)
class TakeHomeImpact:
    gross_contribution: Decimal
    tax_relief: Decimal
    net_cost: Decimal
    net_cost_rate: Decimal  # percent of gross pay


@dataclass(frozen=True)
class AutoEnrolmentDate:
    """When a new starter will be enrolled on the staging calendar."""

    waiting_period_end: date
    auto_enrolment_date: date
    days_until_enrolment: int
    ready_to_enrol: bool


# =============================================================================
# Eligibility checks
# =============================================================================


@dataclass(frozen=True)
class CheckOutcome:
    """One named pass/fail entry in the audit trail."""

    name: CheckName
    passed: bool
    reason: str


@dataclass(frozen=True)
class AgeCheck:
    passed: bool
    age: int
    reason: str


@dataclass(frozen=True)
class ClassificationCheck:
    passed: bool
    prsi_class: PRSIClass
    reason: str
    result: ClassificationResult


@dataclass(frozen=True)
class EarningsCheck:
    passed: bool
    annual_earnings: Decimal
    reckonable_earnings: Decimal
    reason: str
    annualized: AnnualizedEarnings | None = None
    projection: VariableEarningsResult | None = None


@dataclass(frozen=True)
class DurationCheck:
    passed: bool
    months_employed: int
    reason: str


@dataclass(frozen=True)
class OptOutCheck:
    passed: bool
    reason: str
    window: OptOutWindowStatus | None = None
    re_enrolment: ReEnrolmentSchedule | None = None


@dataclass(frozen=True)
class ExclusionCheck:
    passed: bool
    reason: str
    result: ExclusionResult | None = None


@dataclass(frozen=True)
class EligibilityResult:
    """Verdict for one employee with the full reasons trail."""

    employee_id: str
    assessment_date: date
    is_eligible: bool
    reasons: tuple[str, ...]
    checks: tuple[CheckOutcome, ...]
    age_check: AgeCheck
    classification_check: ClassificationCheck
    earnings_check: EarningsCheck
    duration_check: DurationCheck
    opt_out_check: OptOutCheck
    exclusion_check: ExclusionCheck
    eligibility_date: date | None = None
    next_review_date: date | None = None
    auto_enrolment_date: date | None = None
    contribution_details: ContributionResult | None = None
    warnings: tuple[str, ...] = ()

    @property
    def failed_checks(self) -> list[CheckName]:
        return [check.name for check in self.checks if not check.passed]


@dataclass(frozen=True)
class EligibilitySummary:
    """Aggregate counts over a set of eligibility results."""

    total: int
    eligible: int
    ineligible: int
    eligibility_rate: Decimal
    reason_counts: dict[str, int] = field(default_factory=dict)
