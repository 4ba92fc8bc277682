"""Exceptions raised by the auto-enrolment engine.

Only malformed input is an error. Failed eligibility checks, exclusions,
expired opt-out windows and low-confidence projections are ordinary
results and are returned, never raised.
"""

from __future__ import annotations

from typing import Any


class AutoEnrolmentError(Exception):
    """Base class for engine errors."""


class InputError(AutoEnrolmentError, ValueError):
    """Raised when an input value is negative, out of range or unrecognised."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} ({value!r}): {reason}")
