"""Unit tests for variable earnings projection."""

import pytest
from decimal import Decimal

from autoenrol_engine.calculators.types import (
    EarningsConfidence,
    MonthlyEarnings,
    ProjectionMethod,
    TrendDirection,
)
from autoenrol_engine.calculators.variable_earnings import (
    VariableEarningsConfig,
    confidence_for_months,
    detect_trend,
    project_annual_earnings,
    project_batch,
    remove_outliers,
)
from autoenrol_engine.exceptions import InputError


class TestProjection:
    """Test projections by amount of history."""

    def test_full_year_of_identical_months(self, make_history):
        """Twelve months of EUR 3,000 project to exactly EUR 36,000."""
        result = project_annual_earnings(make_history(*["3000"] * 12))
        assert result.projected_annual == Decimal("36000.00")
        assert result.confidence == EarningsConfidence.HIGH
        assert result.method == ProjectionMethod.ACTUAL
        assert result.variance == Decimal("0")
        assert result.warnings == ()

    def test_three_months_is_low_confidence(self, make_history):
        result = project_annual_earnings(make_history("2000", "4000", "3000"))
        assert result.confidence == EarningsConfidence.LOW
        assert result.avg_monthly == Decimal("3000.00")
        assert result.min_monthly == Decimal("2000")
        assert result.max_monthly == Decimal("4000")
        # 2000 -> 3000 is a clear upward trend
        assert result.projected_annual == Decimal("37800.00")
        assert any("Limited data (3 months)" in warning for warning in result.warnings)

    def test_six_months_is_medium_confidence(self, make_history):
        result = project_annual_earnings(make_history(*["2500"] * 6))
        assert result.confidence == EarningsConfidence.MEDIUM
        assert result.method == ProjectionMethod.EXTRAPOLATED
        assert result.projected_annual == Decimal("30000.00")

    def test_uses_trailing_twelve_months(self, make_history):
        """Older months beyond a year are ignored."""
        history = make_history(*(["1000"] * 2 + ["2000"] * 12))
        result = project_annual_earnings(history)
        assert result.projected_annual == Decimal("24000.00")
        assert result.months_of_data == 14

    def test_history_sorted_by_month(self, make_history):
        history = tuple(reversed(make_history("2000", "2100", "2200", "2300")))
        result = project_annual_earnings(history)
        assert [entry.month for entry in result.data_points] == [
            "2025-01",
            "2025-02",
            "2025-03",
            "2025-04",
        ]


class TestInsufficientHistory:
    """Short history is a typed result, not an error."""

    def test_two_months_is_insufficient(self, make_history):
        result = project_annual_earnings(make_history("3000", "3000"))
        assert result.confidence == EarningsConfidence.INSUFFICIENT
        assert result.projected_annual == Decimal("0")
        assert result.is_reliable is False
        assert result.warnings == ("Insufficient data: need at least 3 months, have 2",)

    def test_empty_history(self):
        result = project_annual_earnings([])
        assert result.confidence == EarningsConfidence.INSUFFICIENT
        assert result.months_of_data == 0


class TestEmployerSalary:
    def test_salary_short_circuits_projection(self, make_history):
        result = project_annual_earnings(make_history("100"), annual_salary=Decimal("42000"))
        assert result.projected_annual == Decimal("42000.00")
        assert result.confidence == EarningsConfidence.HIGH
        assert result.avg_monthly == Decimal("3500.00")
        assert result.warnings == ("Using employer-provided annual salary",)

    def test_negative_salary_rejected(self):
        with pytest.raises(InputError):
            project_annual_earnings([], annual_salary=Decimal("-1"))


class TestTrendAndSeasonality:
    """Test trend adjustment and high-variance averaging."""

    def test_increasing_trend_adds_five_percent(self, make_history):
        result = project_annual_earnings(make_history("2000", "2000", "2400", "2400", "2800", "2800"))
        assert result.trend_direction == TrendDirection.INCREASING
        assert result.method == ProjectionMethod.EXTRAPOLATED
        # mean 2400 x 12 = 28800, x 1.05
        assert result.projected_annual == Decimal("30240.00")

    def test_decreasing_trend_removes_five_percent(self, make_history):
        result = project_annual_earnings(make_history("2800", "2800", "2400", "2400", "2000", "2000"))
        assert result.trend_direction == TrendDirection.DECREASING
        assert result.projected_annual == Decimal("27360.00")

    def test_high_variance_uses_plain_average(self, make_history):
        result = project_annual_earnings(make_history("1000", "5000", "1000", "5000"))
        assert result.seasonality_detected is True
        assert result.method == ProjectionMethod.AVERAGE_BASED
        assert result.projected_annual == Decimal("36000.00")
        assert result.variance == Decimal("0.6667")

    def test_detect_trend_stable_with_zero_start(self, make_history):
        assert detect_trend(list(make_history("0", "0", "1000"))) == TrendDirection.STABLE


class TestOutliers:
    def test_extreme_month_removed(self, make_history):
        history = make_history(*(["3000"] * 11 + ["30000"]))
        cleaned = remove_outliers(list(history), Decimal("2.5"))
        assert len(cleaned) == 11

    def test_identical_values_kept(self, make_history):
        """No spread means nothing is an outlier."""
        history = list(make_history(*["3000"] * 6))
        assert remove_outliers(history, Decimal("2.5")) == history

    def test_short_history_untouched(self, make_history):
        history = list(make_history("100", "100", "90000"))
        assert remove_outliers(history, Decimal("0.1")) == history

    def test_outlier_warning(self, make_history):
        result = project_annual_earnings(make_history(*(["3000"] * 11 + ["30000"])))
        assert "Removed 1 outlier data points" in result.warnings
        assert result.months_of_data == 11


class TestConfig:
    def test_confidence_bands(self):
        assert confidence_for_months(2) == EarningsConfidence.INSUFFICIENT
        assert confidence_for_months(3) == EarningsConfidence.LOW
        assert confidence_for_months(6) == EarningsConfidence.MEDIUM
        assert confidence_for_months(12) == EarningsConfidence.HIGH

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            VariableEarningsConfig(minimum_months=6, medium_confidence_months=3)

    def test_custom_minimum(self, make_history):
        config = VariableEarningsConfig(minimum_months=1)
        result = project_annual_earnings(make_history("2000"), config=config)
        assert result.confidence == EarningsConfidence.LOW


class TestBatch:
    def test_project_batch(self, make_history):
        results = project_batch(
            {"A": make_history(*["2000"] * 12), "B": make_history("1000")},
            salaries={"B": Decimal("50000")},
        )
        assert results["A"].projected_annual == Decimal("24000.00")
        assert results["B"].projected_annual == Decimal("50000.00")


class TestMonthlyEarningsValidation:
    def test_bad_month_rejected(self):
        with pytest.raises(InputError):
            MonthlyEarnings(month="2025-13", gross=Decimal("1"))

    def test_negative_gross_rejected(self):
        with pytest.raises(InputError):
            MonthlyEarnings(month="2025-01", gross=Decimal("-1"))
