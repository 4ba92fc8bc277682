"""Batch assessment service - runs the engine over a workforce."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from autoenrol_engine.calculators.engine import EligibilityEngine
from autoenrol_engine.calculators.types import (
    EligibilityInput,
    EligibilityResult,
    EligibilitySummary,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    """Outcome for one employee: a result or the error that stopped it."""

    employee_id: str
    result: EligibilityResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class BatchAssessment:
    """All batch outcomes in input order, plus a summary of the successes."""

    assessment_date: date
    items: tuple[BatchItem, ...]
    summary: EligibilitySummary

    @property
    def results(self) -> list[EligibilityResult]:
        return [item.result for item in self.items if item.result is not None]

    @property
    def errors(self) -> list[BatchItem]:
        return [item for item in self.items if item.error is not None]


class BatchAssessmentService:
    """Assess many employees concurrently.

    Every employee is assessed against the same date. A malformed record
    fails on its own; the rest of the batch still completes and the
    failure is reported on its BatchItem.
    """

    def __init__(self, engine: EligibilityEngine, max_workers: int | None = None):
        self.engine = engine
        self.max_workers = max_workers or engine.settings.batch_max_workers

    def _assess_one(self, employee: EligibilityInput, as_of: date) -> BatchItem:
        try:
            return BatchItem(employee.employee_id, result=self.engine.assess(employee, as_of))
        except Exception as e:
            logger.exception("Assessment failed for employee %s", employee.employee_id)
            return BatchItem(employee.employee_id, error=str(e))

    def assess(
        self,
        employees: Iterable[EligibilityInput],
        assessment_date: date | None = None,
    ) -> BatchAssessment:
        """Assess all employees and summarise the outcome."""
        as_of = assessment_date or date.today()
        employees = list(employees)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            items = tuple(pool.map(lambda employee: self._assess_one(employee, as_of), employees))

        summary = self.engine.summarize(item.result for item in items if item.result is not None)
        failed = sum(1 for item in items if item.error is not None)
        logger.info(
            "Batch assessed %d employees on %s: %d eligible, %d ineligible, %d failed",
            len(items),
            as_of.isoformat(),
            summary.eligible,
            summary.ineligible,
            failed,
        )
        return BatchAssessment(assessment_date=as_of, items=items, summary=summary)
