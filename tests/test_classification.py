"""Unit tests for PRSI classification.

The rule table is first-match, so several tests pin the precedence
between rules that could both apply.
"""

import pytest
from datetime import date
from decimal import Decimal

from autoenrol_engine.calculators.classification import (
    PRSIClassifier,
    describe_class,
    is_class_eligible,
)
from autoenrol_engine.calculators.types import EmploymentType, PRSIClass
from autoenrol_engine.exceptions import InputError

ASSESSED = date(2026, 6, 30)
ADULT = date(1990, 1, 1)
PENSIONER = date(1958, 1, 1)


def classify(
    employment_type=EmploymentType.PRIVATE_SECTOR,
    weekly="575",
    annual="30000",
    date_of_birth=ADULT,
    start=date(2020, 1, 1),
):
    return PRSIClassifier.classify(
        date_of_birth=date_of_birth,
        employment_start_date=start,
        employment_type=employment_type,
        weekly_earnings=Decimal(weekly),
        annual_income=Decimal(annual),
        assessment_date=ASSESSED,
    )


class TestStandardClassification:
    """Test the default class."""

    def test_private_sector_employee_is_class_a(self):
        result = classify()
        assert result.prsi_class == PRSIClass.A
        assert result.eligible_for_auto_enrolment is True
        assert result.employee_rate == Decimal("4.0")
        assert result.employer_rate == Decimal("11.05")

    def test_age_reported(self):
        assert classify().age == 36

    def test_share_fisherman_is_eligible_class_p(self):
        result = classify(EmploymentType.SHARE_FISHERMAN)
        assert result.prsi_class == PRSIClass.P
        assert result.eligible_for_auto_enrolment is True


class TestExcludedClasses:
    """Test classes that are outside auto-enrolment."""

    def test_pensioner_with_income_is_class_k(self):
        result = classify(date_of_birth=PENSIONER)
        assert result.prsi_class == PRSIClass.K
        assert result.eligible_for_auto_enrolment is False

    def test_low_earnings_working_age_is_class_m(self):
        result = classify(weekly="30", annual="1560")
        assert result.prsi_class == PRSIClass.M
        assert result.mandatory is False

    def test_low_earnings_under_sixteen_is_class_j(self):
        result = classify(weekly="30", annual="1560", date_of_birth=date(2011, 1, 1))
        assert result.prsi_class == PRSIClass.J

    def test_self_employed_is_class_s(self):
        assert classify(EmploymentType.SELF_EMPLOYED).prsi_class == PRSIClass.S

    @pytest.mark.parametrize(
        "employment_type,expected",
        [
            (EmploymentType.PUBLIC_SECTOR_PRE_1995, PRSIClass.D),
            (EmploymentType.PUBLIC_SECTOR_POST_1995, PRSIClass.E),
            (EmploymentType.DEFENCE_FORCES_OFFICER, PRSIClass.C),
            (EmploymentType.GARDA_OFFICER, PRSIClass.C),
            (EmploymentType.DEFENCE_FORCES_NON_OFFICER, PRSIClass.H),
            (EmploymentType.HEALTH_BOARD, PRSIClass.B),
        ],
    )
    def test_public_service_classes(self, employment_type, expected):
        result = classify(employment_type)
        assert result.prsi_class == expected
        assert result.eligible_for_auto_enrolment is False

    def test_public_servant_recruited_before_cutover_is_class_d(self):
        """Start date before 6 April 1995 overrides the declared type."""
        result = classify(EmploymentType.PUBLIC_SECTOR_POST_1995, start=date(1995, 4, 5))
        assert result.prsi_class == PRSIClass.D

    def test_public_servant_recruited_on_cutover_is_class_e(self):
        result = classify(EmploymentType.PUBLIC_SECTOR_POST_1995, start=date(1995, 4, 6))
        assert result.prsi_class == PRSIClass.E


class TestRulePrecedence:
    """Test that earlier rules win."""

    def test_low_earnings_beats_share_fisherman(self):
        result = classify(EmploymentType.SHARE_FISHERMAN, weekly="30", annual="1560")
        assert result.prsi_class == PRSIClass.M

    def test_pensioner_beats_public_sector(self):
        result = classify(EmploymentType.HEALTH_BOARD, date_of_birth=PENSIONER)
        assert result.prsi_class == PRSIClass.K

    def test_weekly_threshold_is_strict(self):
        """Exactly EUR 38 a week is not low earnings."""
        assert classify(weekly="38", annual="1983").prsi_class == PRSIClass.A

    def test_rule_order_is_fixed(self):
        order = [rule.prsi_class for rule in PRSIClassifier.RULES]
        assert order[0] == PRSIClass.K
        assert order[-1] == PRSIClass.A

    def test_rule_table_is_immutable(self):
        assert isinstance(PRSIClassifier.RULES, tuple)
        with pytest.raises(AttributeError):
            PRSIClassifier.RULES.append(PRSIClassifier.RULES[0])


class TestValidation:
    def test_negative_weekly_earnings_rejected(self):
        with pytest.raises(InputError):
            classify(weekly="-1")

    def test_negative_annual_income_rejected(self):
        with pytest.raises(InputError):
            classify(annual="-1")


class TestHelpers:
    def test_is_class_eligible(self):
        assert is_class_eligible(PRSIClass.A)
        assert is_class_eligible(PRSIClass.P)
        assert not is_class_eligible(PRSIClass.E)

    def test_describe_class(self):
        assert describe_class(PRSIClass.P) == "Share fishermen"
