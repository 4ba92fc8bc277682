"""Pension auto-enrolment eligibility and contribution engine."""

__version__ = "1.0.0"
