"""Confidence-scored projection of annual earnings from monthly history.

Used for workers on variable pay where one period's gross is not a fair
annual figure. The projected number is never returned on its own: the
confidence, method, statistics and warnings travel with it, and an
INSUFFICIENT projection is always zero.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping

from autoenrol_engine.calculators.money import ZERO, round_to_cents, to_decimal
from autoenrol_engine.calculators.types import (
    EarningsConfidence,
    MonthlyEarnings,
    ProjectionMethod,
    TrendDirection,
    VariableEarningsResult,
)
from autoenrol_engine.exceptions import InputError

logger = logging.getLogger(__name__)

TREND_THRESHOLD = Decimal("0.10")
TREND_UP = Decimal("1.05")
TREND_DOWN = Decimal("0.95")
VARIANCE_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class VariableEarningsConfig:
    """Thresholds for the projector."""

    minimum_months: int = 3
    high_confidence_months: int = 12
    medium_confidence_months: int = 6
    seasonality_threshold: Decimal = Decimal("0.3")
    outlier_z_score: Decimal = Decimal("2.5")

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not 0 < self.minimum_months <= self.medium_confidence_months <= self.high_confidence_months:
            raise ValueError(
                "month thresholds must satisfy 0 < minimum <= medium <= high"
            )
        if self.seasonality_threshold <= 0:
            raise ValueError("seasonality_threshold must be positive")
        if self.outlier_z_score <= 0:
            raise ValueError("outlier_z_score must be positive")


DEFAULT_CONFIG = VariableEarningsConfig()


def confidence_for_months(
    months: int, config: VariableEarningsConfig = DEFAULT_CONFIG
) -> EarningsConfidence:
    """Confidence level implied by a number of months of history."""
    if months < config.minimum_months:
        return EarningsConfidence.INSUFFICIENT
    if months >= config.high_confidence_months:
        return EarningsConfidence.HIGH
    if months >= config.medium_confidence_months:
        return EarningsConfidence.MEDIUM
    return EarningsConfidence.LOW


def _mean(values: list[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values)


def _population_std_dev(values: list[Decimal], mean: Decimal) -> Decimal:
    if not values:
        return ZERO
    squared = sum(((value - mean) ** 2 for value in values), ZERO)
    return (squared / len(values)).sqrt()


def remove_outliers(
    history: list[MonthlyEarnings], z_score: Decimal
) -> list[MonthlyEarnings]:
    """Drop months further than z_score standard deviations from the mean.

    Fewer than four points, or no spread at all, leaves the history as is.
    """
    if len(history) < 4:
        return history
    values = [entry.gross for entry in history]
    mean = _mean(values)
    std_dev = _population_std_dev(values, mean)
    if std_dev == 0:
        return history
    return [entry for entry in history if abs(entry.gross - mean) / std_dev <= z_score]


def detect_trend(history: list[MonthlyEarnings]) -> TrendDirection:
    """Compare the first third of the window with the last third."""
    if len(history) < 3:
        return TrendDirection.STABLE
    third = len(history) // 3
    first_avg = _mean([entry.gross for entry in history[:third]])
    last_avg = _mean([entry.gross for entry in history[-third:]])
    if first_avg == 0:
        return TrendDirection.STABLE

    change = (last_avg - first_avg) / first_avg
    if change > TREND_THRESHOLD:
        return TrendDirection.INCREASING
    if change < -TREND_THRESHOLD:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def _insufficient(
    history: tuple[MonthlyEarnings, ...], config: VariableEarningsConfig
) -> VariableEarningsResult:
    values = [entry.gross for entry in history]
    average = round_to_cents(_mean(values)) if values else ZERO
    return VariableEarningsResult(
        projected_annual=ZERO,
        confidence=EarningsConfidence.INSUFFICIENT,
        months_of_data=len(history),
        data_points=history,
        method=ProjectionMethod.EXTRAPOLATED,
        variance=ZERO,
        min_monthly=ZERO,
        max_monthly=ZERO,
        avg_monthly=average,
        trend_direction=TrendDirection.STABLE,
        seasonality_detected=False,
        warnings=(
            f"Insufficient data: need at least {config.minimum_months} months, "
            f"have {len(history)}",
        ),
    )


def project_annual_earnings(
    history: Iterable[MonthlyEarnings],
    annual_salary: Decimal | None = None,
    config: VariableEarningsConfig = DEFAULT_CONFIG,
) -> VariableEarningsResult:
    """Project annual earnings from monthly payroll history.

    An employer-supplied annual salary short-circuits the projection with
    HIGH confidence. Otherwise the history is sorted, stripped of outliers
    and projected as:

    - 12+ months: sum of the trailing 12 (ACTUAL)
    - high variance: mean x 12 (AVERAGE_BASED)
    - otherwise: mean x 12, adjusted 5% for a clear trend (EXTRAPOLATED)

    Raises:
        InputError: If the supplied annual salary is negative.
    """
    months = tuple(history)

    if annual_salary is not None:
        salary = to_decimal(annual_salary)
        if salary < 0:
            raise InputError("annual_salary", salary, "cannot be negative")
        if salary > 0:
            monthly = round_to_cents(salary / 12)
            return VariableEarningsResult(
                projected_annual=round_to_cents(salary),
                confidence=EarningsConfidence.HIGH,
                months_of_data=len(months),
                data_points=months,
                method=ProjectionMethod.ACTUAL,
                variance=ZERO,
                min_monthly=monthly,
                max_monthly=monthly,
                avg_monthly=monthly,
                trend_direction=TrendDirection.STABLE,
                seasonality_detected=False,
                warnings=("Using employer-provided annual salary",),
            )

    if len(months) < config.minimum_months:
        return _insufficient(months, config)

    ordered = sorted(months, key=lambda entry: entry.month)
    cleaned = remove_outliers(ordered, config.outlier_z_score)
    warnings: list[str] = []
    if len(cleaned) < len(ordered):
        removed = len(ordered) - len(cleaned)
        warnings.append(f"Removed {removed} outlier data points")
        logger.debug("Removed %d outlier months from earnings history", removed)

    confidence = confidence_for_months(len(cleaned), config)
    if confidence == EarningsConfidence.INSUFFICIENT:
        return _insufficient(tuple(cleaned), config)

    values = [entry.gross for entry in cleaned]
    mean = _mean(values)
    std_dev = _population_std_dev(values, mean)
    variance = (std_dev / mean).quantize(VARIANCE_PLACES) if mean > 0 else ZERO

    seasonal = variance > config.seasonality_threshold
    if seasonal:
        warnings.append(
            f"High variance detected ({variance * 100:.1f}%) - possible seasonal pattern"
        )

    trend = detect_trend(cleaned)

    if confidence == EarningsConfidence.MEDIUM:
        warnings.append(
            f"Only {len(cleaned)} months of data available - "
            "projection may not reflect annual patterns"
        )
    elif confidence == EarningsConfidence.LOW:
        warnings.append(
            f"Limited data ({len(cleaned)} months) - projection has low confidence"
        )

    if len(cleaned) >= 12:
        projected = round_to_cents(sum(values[-12:], ZERO))
        method = ProjectionMethod.ACTUAL
    elif seasonal:
        projected = round_to_cents(mean * 12)
        method = ProjectionMethod.AVERAGE_BASED
    else:
        multiplier = Decimal("1")
        if trend == TrendDirection.INCREASING:
            multiplier = TREND_UP
        elif trend == TrendDirection.DECREASING:
            multiplier = TREND_DOWN
        projected = round_to_cents(round_to_cents(mean * 12) * multiplier)
        method = ProjectionMethod.EXTRAPOLATED

    return VariableEarningsResult(
        projected_annual=projected,
        confidence=confidence,
        months_of_data=len(cleaned),
        data_points=tuple(cleaned),
        method=method,
        variance=variance,
        min_monthly=min(values),
        max_monthly=max(values),
        avg_monthly=round_to_cents(mean),
        trend_direction=trend,
        seasonality_detected=seasonal,
        warnings=tuple(warnings),
    )


def project_batch(
    histories: Mapping[str, Iterable[MonthlyEarnings]],
    salaries: Mapping[str, Decimal] | None = None,
    config: VariableEarningsConfig = DEFAULT_CONFIG,
) -> dict[str, VariableEarningsResult]:
    """Project earnings for several employees keyed by employee id."""
    salaries = salaries or {}
    return {
        employee_id: project_annual_earnings(history, salaries.get(employee_id), config)
        for employee_id, history in histories.items()
    }
