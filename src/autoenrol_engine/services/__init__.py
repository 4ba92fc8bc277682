"""Auto-enrolment engine services."""

from autoenrol_engine.services.batch_service import (
    BatchAssessment,
    BatchAssessmentService,
    BatchItem,
)

__all__ = [
    "BatchAssessment",
    "BatchAssessmentService",
    "BatchItem",
]
