"""PRSI employment classification.

Classification is an ordered decision table. Several predicates can hold
for the same worker (a pensioner on low pay, a self-employed fisherman),
so rules are evaluated top to bottom and the first match wins. The order
is legal precedence and must stay a list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable

from autoenrol_engine.calculators.dates import exact_age, normalize_date
from autoenrol_engine.calculators.types import ClassificationResult, EmploymentType, PRSIClass
from autoenrol_engine.exceptions import InputError

logger = logging.getLogger(__name__)

PENSIONER_AGE = 66
LOW_EARNINGS_MIN_AGE = 16
LOW_EARNINGS_MAX_AGE = 65
WEEKLY_EARNINGS_THRESHOLD = Decimal("38")
ANNUAL_INCOME_THRESHOLD = Decimal("5000")
PUBLIC_SECTOR_CUTOVER = date(1995, 4, 6)

# (employee %, employer %)
PRSI_RATES: dict[PRSIClass, tuple[Decimal, Decimal]] = {
    PRSIClass.A: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.B: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.C: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.D: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.E: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.H: (Decimal("0.9"), Decimal("0.0")),
    PRSIClass.J: (Decimal("0.0"), Decimal("0.5")),
    PRSIClass.K: (Decimal("4.0"), Decimal("0.5")),
    PRSIClass.M: (Decimal("0.0"), Decimal("0.5")),
    PRSIClass.P: (Decimal("4.0"), Decimal("11.05")),
    PRSIClass.S: (Decimal("4.0"), Decimal("0.0")),
}

CLASS_DESCRIPTIONS: dict[PRSIClass, str] = {
    PRSIClass.A: "Industrial, commercial and service-type employment under age 66",
    PRSIClass.B: "Permanent and pensionable employees of health boards",
    PRSIClass.C: "Commissioned officers of Defence Forces and Gardai",
    PRSIClass.D: "Permanent and pensionable public servants (recruited before 6 April 1995)",
    PRSIClass.E: "Permanent and pensionable public servants (recruited from 6 April 1995)",
    PRSIClass.H: "Members of Defence Forces (non-commissioned)",
    PRSIClass.J: "Employees with income under EUR 38 per week from each employment",
    PRSIClass.K: "Employees aged 66 or over with reckonable pay of EUR 5,000 or more",
    PRSIClass.M: "Employees with reckonable earnings under EUR 38 per week (aged 16-65)",
    PRSIClass.P: "Share fishermen",
    PRSIClass.S: "Self-employed with reckonable income of EUR 5,000 or more",
}

AUTO_ENROLMENT_CLASSES = frozenset({PRSIClass.A, PRSIClass.P})


@dataclass(frozen=True)
class ClassificationFacts:
    """Facts the decision table is evaluated against."""

    age: int
    employment_type: EmploymentType
    weekly_earnings: Decimal
    annual_income: Decimal
    employment_start_date: date


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the decision table."""

    name: str
    prsi_class: PRSIClass
    applies: Callable[[ClassificationFacts], bool]
    reason: str
    eligible: bool = False
    mandatory: bool = True


def _is_pre_cutover_public_servant(facts: ClassificationFacts) -> bool:
    if facts.employment_type == EmploymentType.PUBLIC_SECTOR_PRE_1995:
        return True
    return (
        facts.employment_type == EmploymentType.PUBLIC_SECTOR_POST_1995
        and facts.employment_start_date < PUBLIC_SECTOR_CUTOVER
    )


class PRSIClassifier:
    """Resolves a worker's PRSI class from the ordered rule table."""

    # Evaluated top to bottom; order is legal precedence.
    RULES: tuple[ClassificationRule, ...] = (
        ClassificationRule(
            name="pensioner",
            prsi_class=PRSIClass.K,
            applies=lambda f: f.age >= PENSIONER_AGE
            and f.annual_income >= ANNUAL_INCOME_THRESHOLD,
            reason="Employee aged 66 or over with reckonable pay of EUR 5,000 or more per year",
        ),
        ClassificationRule(
            name="low_earnings_working_age",
            prsi_class=PRSIClass.M,
            applies=lambda f: f.weekly_earnings < WEEKLY_EARNINGS_THRESHOLD
            and LOW_EARNINGS_MIN_AGE <= f.age <= LOW_EARNINGS_MAX_AGE,
            reason="Weekly earnings under EUR 38 (age 16-65)",
            mandatory=False,
        ),
        ClassificationRule(
            name="low_earnings",
            prsi_class=PRSIClass.J,
            applies=lambda f: f.weekly_earnings < WEEKLY_EARNINGS_THRESHOLD,
            reason="Weekly earnings under EUR 38",
            mandatory=False,
        ),
        ClassificationRule(
            name="self_employed",
            prsi_class=PRSIClass.S,
            applies=lambda f: f.employment_type == EmploymentType.SELF_EMPLOYED
            and f.annual_income >= ANNUAL_INCOME_THRESHOLD,
            reason="Self-employed with reckonable income of EUR 5,000 or more",
        ),
        ClassificationRule(
            name="share_fisherman",
            prsi_class=PRSIClass.P,
            applies=lambda f: f.employment_type == EmploymentType.SHARE_FISHERMAN,
            reason="Share fisherman employment",
            eligible=True,
        ),
        ClassificationRule(
            name="public_sector_pre_cutover",
            prsi_class=PRSIClass.D,
            applies=_is_pre_cutover_public_servant,
            reason="Permanent and pensionable public servant recruited before 6 April 1995",
        ),
        ClassificationRule(
            name="public_sector",
            prsi_class=PRSIClass.E,
            applies=lambda f: f.employment_type == EmploymentType.PUBLIC_SECTOR_POST_1995,
            reason="Permanent and pensionable public servant recruited from 6 April 1995",
        ),
        ClassificationRule(
            name="commissioned_officer",
            prsi_class=PRSIClass.C,
            applies=lambda f: f.employment_type
            in (EmploymentType.DEFENCE_FORCES_OFFICER, EmploymentType.GARDA_OFFICER),
            reason="Commissioned officer of Defence Forces or Garda Siochana",
        ),
        ClassificationRule(
            name="defence_non_officer",
            prsi_class=PRSIClass.H,
            applies=lambda f: f.employment_type == EmploymentType.DEFENCE_FORCES_NON_OFFICER,
            reason="Non-commissioned member of Defence Forces",
        ),
        ClassificationRule(
            name="health_board",
            prsi_class=PRSIClass.B,
            applies=lambda f: f.employment_type == EmploymentType.HEALTH_BOARD,
            reason="Permanent and pensionable employee of health board",
        ),
        ClassificationRule(
            name="standard",
            prsi_class=PRSIClass.A,
            applies=lambda f: True,
            reason="Industrial, commercial and service-type employment",
            eligible=True,
        ),
    )

    @classmethod
    def match(cls, facts: ClassificationFacts) -> ClassificationRule:
        """Return the first rule that applies to the facts."""
        for rule in cls.RULES:
            if rule.applies(facts):
                return rule
        # The final rule always applies.
        raise AssertionError("classification table has no default rule")

    @classmethod
    def classify(
        cls,
        date_of_birth: date,
        employment_start_date: date,
        employment_type: EmploymentType,
        weekly_earnings: Decimal,
        annual_income: Decimal,
        assessment_date: date,
    ) -> ClassificationResult:
        """Determine the PRSI class for a worker on the assessment date.

        Raises:
            InputError: If either earnings figure is negative.
        """
        if weekly_earnings < 0:
            raise InputError("weekly_earnings", weekly_earnings, "cannot be negative")
        if annual_income < 0:
            raise InputError("annual_income", annual_income, "cannot be negative")

        facts = ClassificationFacts(
            age=exact_age(date_of_birth, assessment_date),
            employment_type=EmploymentType(employment_type),
            weekly_earnings=weekly_earnings,
            annual_income=annual_income,
            employment_start_date=normalize_date(employment_start_date),
        )
        rule = cls.match(facts)
        logger.debug("Matched PRSI rule %s (class %s)", rule.name, rule.prsi_class.value)

        employee_rate, employer_rate = PRSI_RATES[rule.prsi_class]
        return ClassificationResult(
            prsi_class=rule.prsi_class,
            eligible_for_auto_enrolment=rule.eligible,
            reason=rule.reason,
            age=facts.age,
            employee_rate=employee_rate,
            employer_rate=employer_rate,
            mandatory=rule.mandatory,
        )


def is_class_eligible(prsi_class: PRSIClass) -> bool:
    """Whether a PRSI class is brought into auto-enrolment."""
    return PRSIClass(prsi_class) in AUTO_ENROLMENT_CLASSES


def describe_class(prsi_class: PRSIClass) -> str:
    return CLASS_DESCRIPTIONS[PRSIClass(prsi_class)]
