"""Auto-enrolment eligibility and contribution calculators."""

from autoenrol_engine.calculators.classification import PRSIClassifier
from autoenrol_engine.calculators.engine import EligibilityEngine
from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import (
    ContributionResult,
    EligibilityInput,
    EligibilityResult,
    EligibilitySummary,
)
from autoenrol_engine.calculators.variable_earnings import VariableEarningsConfig

__all__ = [
    "EligibilityEngine",
    "EligibilityInput",
    "EligibilityResult",
    "EligibilitySummary",
    "ContributionResult",
    "PRSIClassifier",
    "StagingCalendar",
    "VariableEarningsConfig",
]
