"""Director, shareholding and self-employment exclusions.

Unlike classification, exclusion rules are not first-match: every rule
that applies contributes a reason so the audit trail is complete. The
50% control threshold is a strict inequality.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from autoenrol_engine.calculators.money import to_decimal
from autoenrol_engine.calculators.types import (
    ControlIndicators,
    DirectorType,
    EmploymentClassification,
    ExclusionResult,
    FamilyShareholding,
    ShareholdingDetails,
)
from autoenrol_engine.exceptions import InputError

CONTROLLING_SHAREHOLDING_THRESHOLD = Decimal("0.50")
MANAGING_DIRECTOR_CONTROL_THRESHOLD = Decimal("0.25")
EMPLOYEE_INDICATOR_THRESHOLD = 4

_ONE = Decimal("1")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class ContractorStatus:
    """Result of the employment-status indicator test."""

    is_employee: bool
    score: int
    factors: tuple[str, ...]


def _validate_fraction(name: str, value: Decimal) -> None:
    if not _ZERO <= value <= _ONE:
        raise InputError(name, value, "must be between 0 and 1")


def _percent(value: Decimal) -> str:
    return f"{value * 100:.1f}%"


def family_shareholding(
    individual: Decimal,
    spouse: Decimal = _ZERO,
    children: Decimal = _ZERO,
    parents: Decimal = _ZERO,
) -> Decimal:
    """Combined holding of a director and connected persons, capped at 100%."""
    for name, value in (
        ("shareholding", individual),
        ("spouse_shareholding", spouse),
        ("children_shareholding", children),
        ("parents_shareholding", parents),
    ):
        _validate_fraction(name, value)
    return min(individual + spouse + children + parents, _ONE)


def has_de_facto_control(shareholding: Decimal, indicators: ControlIndicators) -> bool:
    """Whether a director controls the company without a majority holding."""
    if indicators.is_sole_director:
        return True
    if (
        indicators.is_managing_director
        and shareholding > MANAGING_DIRECTOR_CONTROL_THRESHOLD
    ):
        return True
    return (
        indicators.controls_board_majority
        or indicators.has_veto_rights
        or indicators.has_voting_rights_agreement
    )


def evaluate_exclusions(
    director_type: DirectorType = DirectorType.NONE,
    shareholding: Decimal = _ZERO,
    classification: EmploymentClassification = EmploymentClassification.EMPLOYEE,
    family: FamilyShareholding | None = None,
    control: ControlIndicators | None = None,
) -> ExclusionResult:
    """Collect every exclusion reason that applies.

    Raises:
        InputError: If the shareholding is outside [0, 1].
    """
    shareholding = to_decimal(shareholding)
    _validate_fraction("shareholding", shareholding)
    director_type = DirectorType(director_type)
    classification = EmploymentClassification(classification)
    is_director = director_type != DirectorType.NONE
    reasons: list[str] = []

    if classification == EmploymentClassification.SELF_EMPLOYED:
        reasons.append(
            "Self-employed individuals are excluded from automatic enrolment (PRSI Class S)"
        )

    if classification == EmploymentClassification.PARTNER:
        reasons.append("Partners in partnerships are excluded from automatic enrolment")

    if is_director and shareholding > CONTROLLING_SHAREHOLDING_THRESHOLD:
        reasons.append(
            f"Directors with >{_percent(CONTROLLING_SHAREHOLDING_THRESHOLD)} shareholding "
            f"are excluded (current shareholding: {_percent(shareholding)})"
        )

    combined = shareholding
    if family is not None and family.has_related_holdings:
        combined = family_shareholding(
            shareholding, family.spouse, family.children, family.parents
        )
        if is_director and combined > CONTROLLING_SHAREHOLDING_THRESHOLD:
            reasons.append(
                f"Directors with combined family shareholding "
                f">{_percent(CONTROLLING_SHAREHOLDING_THRESHOLD)} are excluded "
                f"(combined family shareholding: {_percent(combined)})"
            )

    if is_director and control is not None and has_de_facto_control(shareholding, control):
        reasons.append("Directors with de facto control of the company are excluded")

    if director_type == DirectorType.SHADOW:
        reasons.append("Shadow directors are excluded from automatic enrolment")

    is_excluded = bool(reasons)
    resolved = classification
    if is_excluded and is_director:
        resolved = EmploymentClassification.CONTROLLING_DIRECTOR

    return ExclusionResult(
        is_excluded=is_excluded,
        exclusion_reasons=tuple(reasons),
        classification=resolved,
        shareholding=ShareholdingDetails(
            personal=shareholding,
            family=combined,
            exceeds_threshold=max(shareholding, combined) > CONTROLLING_SHAREHOLDING_THRESHOLD,
            threshold=CONTROLLING_SHAREHOLDING_THRESHOLD,
        ),
    )


def exclusion_summary(result: ExclusionResult) -> str:
    if result.is_eligible:
        return "Individual is ELIGIBLE for automatic enrolment"
    reasons = "; ".join(result.exclusion_reasons)
    return f"Individual is EXCLUDED from automatic enrolment. Reasons: {reasons}"


def contractor_employee_status(
    has_substitution_rights: bool,
    provides_own_equipment: bool,
    takes_financial_risk: bool,
    controls_work_methods: bool,
    works_for_multiple_clients: bool,
    is_integrated_into_business: bool,
) -> ContractorStatus:
    """Score employment-status indicators for a nominal contractor.

    Four or more employee indicators mean the worker is treated as an
    employee.
    """
    indicators = [
        (not has_substitution_rights, "No substitution rights (must perform work personally)"),
        (not provides_own_equipment, "Does not provide own equipment"),
        (not takes_financial_risk, "No financial risk (guaranteed payment)"),
        (not controls_work_methods, "Does not control how work is performed"),
        (not works_for_multiple_clients, "Works exclusively for one client"),
        (is_integrated_into_business, "Integrated into business operations"),
    ]
    factors = tuple(label for present, label in indicators if present)
    return ContractorStatus(
        is_employee=len(factors) >= EMPLOYEE_INDICATOR_THRESHOLD,
        score=len(factors),
        factors=factors,
    )
