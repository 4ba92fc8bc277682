"""Auto-enrolment Command Line Interface.

Provides tools for:
- Eligibility assessment of one employee or a workforce file
- Phased contribution calculation
- Opt-out request validation
- Re-enrolment scheduling
- Retirement pot projection

Usage:
    python -m autoenrol_engine assess --input employees.json --date 2026-01-31
    python -m autoenrol_engine contributions --earnings 45000 --phase 2
    python -m autoenrol_engine opt-out --enrolment-date 2026-01-01 --request-date 2026-01-20
    python -m autoenrol_engine re-enrolment --opt-out-date 2024-02-01
    python -m autoenrol_engine project-pot --earnings 40000 --years 30

All commands print JSON to stdout. Logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter

from autoenrol_engine.calculators import contributions
from autoenrol_engine.calculators.engine import EligibilityEngine
from autoenrol_engine.calculators.opt_out import schedule_re_enrolment, validate_opt_out
from autoenrol_engine.calculators.staging import StagingCalendar
from autoenrol_engine.calculators.types import EnrolmentType, PayFrequency, StagingFrequency
from autoenrol_engine.config import Settings, get_settings
from autoenrol_engine.exceptions import AutoEnrolmentError
from autoenrol_engine.schemas import (
    BatchAssessmentResponse,
    BatchErrorResponse,
    ContributionRecordIn,
    ContributionResultResponse,
    EligibilityResultResponse,
    EligibilitySummaryResponse,
    EmployeeRecord,
    OptOutDecisionResponse,
    ReEnrolmentScheduleResponse,
    RetirementPotResponse,
)
from autoenrol_engine.services.batch_service import BatchAssessmentService

logger = logging.getLogger(__name__)

_employee_list = TypeAdapter(list[EmployeeRecord])
_contribution_list = TypeAdapter(list[ContributionRecordIn])


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_amount(s: str) -> Decimal:
    """Parse a decimal amount."""
    try:
        return Decimal(s)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {s!r}") from None


def _read_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _emit(model: BaseModel) -> None:
    print(json.dumps(model.model_dump(mode="json"), indent=2))


class AutoEnrolmentCli:
    """Auto-enrolment Command Line Interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m autoenrol_engine",
            description="Pension auto-enrolment eligibility and contribution tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # assess command
        assess = subparsers.add_parser(
            "assess",
            help="Assess auto-enrolment eligibility",
        )
        assess.add_argument(
            "--input",
            type=str,
            required=True,
            help="JSON file with one employee object or a list of them ('-' for stdin)",
        )
        assess.add_argument(
            "--date",
            type=parse_date,
            help="Assessment date (default: today)",
        )
        assess.add_argument(
            "--staging-frequency",
            type=str.upper,
            choices=[f.value for f in StagingFrequency],
            help="Employer staging frequency; enables auto-enrolment dates",
        )
        assess.add_argument(
            "--staging-day",
            type=int,
            action="append",
            help="Staging day of month (repeat once per staging month)",
        )

        # contributions command
        contrib = subparsers.add_parser(
            "contributions",
            help="Calculate phased contributions",
        )
        contrib.add_argument(
            "--earnings",
            type=parse_amount,
            required=True,
            help="Annual earnings in EUR",
        )
        phase_source = contrib.add_mutually_exclusive_group()
        phase_source.add_argument(
            "--phase",
            type=int,
            choices=list(contributions.PHASES),
            help="Contribution phase (default: 1)",
        )
        phase_source.add_argument(
            "--enrolment-date",
            type=parse_date,
            help="Derive the phase from time in the scheme since this date",
        )
        contrib.add_argument(
            "--date",
            type=parse_date,
            help="Date used with --enrolment-date (default: today)",
        )
        contrib.add_argument(
            "--frequency",
            type=str.lower,
            choices=[f.value for f in PayFrequency],
            default=PayFrequency.MONTHLY.value,
            help="Pay frequency for per-period amounts (default: monthly)",
        )

        # opt-out command
        opt_out = subparsers.add_parser(
            "opt-out",
            help="Validate an opt-out request",
        )
        opt_out.add_argument(
            "--enrolment-date",
            type=parse_date,
            required=True,
            help="Date of automatic enrolment or re-enrolment",
        )
        opt_out.add_argument(
            "--request-date",
            type=parse_date,
            help="Date of the opt-out request (default: today)",
        )
        opt_out.add_argument(
            "--re-enrolment",
            action="store_true",
            help="The enrolment was a re-enrolment",
        )
        opt_out.add_argument(
            "--contributions",
            type=str,
            help="JSON file of contributions already deducted, for the refund",
        )

        # re-enrolment command
        re_enrol = subparsers.add_parser(
            "re-enrolment",
            help="Schedule re-enrolment after an opt-out",
        )
        re_enrol.add_argument(
            "--opt-out-date",
            type=parse_date,
            required=True,
            help="Date of the last opt-out",
        )
        re_enrol.add_argument(
            "--date",
            type=parse_date,
            help="Reference date (default: today)",
        )
        re_enrol.add_argument(
            "--interval",
            type=int,
            help="Years between opt-out and re-enrolment (default: from settings)",
        )

        # project-pot command
        pot = subparsers.add_parser(
            "project-pot",
            help="Project a retirement pot",
        )
        pot.add_argument(
            "--earnings",
            type=parse_amount,
            required=True,
            help="Current annual earnings in EUR",
        )
        pot.add_argument(
            "--years",
            type=int,
            required=True,
            help="Years until retirement",
        )
        pot.add_argument(
            "--salary-growth",
            type=parse_amount,
            default=contributions.DEFAULT_SALARY_GROWTH,
            help="Annual salary growth (default: 0.025)",
        )
        pot.add_argument(
            "--investment-return",
            type=parse_amount,
            default=contributions.DEFAULT_INVESTMENT_RETURN,
            help="Annual investment return (default: 0.05)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "assess": self._cmd_assess,
            "contributions": self._cmd_contributions,
            "opt-out": self._cmd_opt_out,
            "re-enrolment": self._cmd_re_enrolment,
            "project-pot": self._cmd_project_pot,
        }

        handler = handlers.get(parsed.command)
        if not handler:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except (AutoEnrolmentError, ValueError, OSError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

    def _staging(self, args: argparse.Namespace) -> StagingCalendar | None:
        if args.staging_frequency is None:
            return None
        return StagingCalendar(
            frequency=StagingFrequency(args.staging_frequency),
            days=tuple(args.staging_day or (1,)),
        )

    def _cmd_assess(self, args: argparse.Namespace) -> int:
        """Assess one employee, or a list of employees as a batch."""
        payload = _read_json(args.input)
        engine = EligibilityEngine(self.settings, staging=self._staging(args))
        as_of = args.date or date.today()

        if isinstance(payload, dict):
            employee = EmployeeRecord.model_validate(payload).to_input()
            _emit(EligibilityResultResponse.from_result(engine.assess(employee, as_of)))
            return 0

        employees = [record.to_input() for record in _employee_list.validate_python(payload)]
        batch = BatchAssessmentService(engine).assess(employees, as_of)
        _emit(
            BatchAssessmentResponse(
                assessment_date=batch.assessment_date,
                results=[EligibilityResultResponse.from_result(r) for r in batch.results],
                errors=[BatchErrorResponse.model_validate(item) for item in batch.errors],
                summary=EligibilitySummaryResponse.model_validate(batch.summary),
            )
        )
        return 0

    def _cmd_contributions(self, args: argparse.Namespace) -> int:
        """Calculate contributions for a phase or an enrolment date."""
        upper = self.settings.upper_earnings_limit
        if args.enrolment_date:
            result = contributions.calculate_for_enrolment(
                args.earnings,
                args.enrolment_date,
                args.date or date.today(),
                args.frequency,
                upper,
            )
        else:
            result = contributions.calculate(
                args.earnings, args.phase or 1, args.frequency, upper_limit=upper
            )
        _emit(ContributionResultResponse.model_validate(result))
        return 0

    def _cmd_opt_out(self, args: argparse.Namespace) -> int:
        """Validate an opt-out request. Exit code 2 when it is refused."""
        records = []
        if args.contributions:
            records = [
                record.to_domain()
                for record in _contribution_list.validate_python(_read_json(args.contributions))
            ]
        decision = validate_opt_out(
            args.enrolment_date,
            EnrolmentType.RE_ENROLMENT if args.re_enrolment else EnrolmentType.INITIAL,
            args.request_date or date.today(),
            records,
            interval_years=self.settings.re_enrolment_interval_years,
        )
        _emit(OptOutDecisionResponse.model_validate(decision))
        if not decision.is_valid:
            logger.info("Opt-out refused: %s", decision.reason)
            return 2
        return 0

    def _cmd_re_enrolment(self, args: argparse.Namespace) -> int:
        schedule = schedule_re_enrolment(
            args.opt_out_date,
            args.date or date.today(),
            interval_years=args.interval or self.settings.re_enrolment_interval_years,
        )
        _emit(ReEnrolmentScheduleResponse.model_validate(schedule))
        return 0

    def _cmd_project_pot(self, args: argparse.Namespace) -> int:
        projection = contributions.project_retirement_pot(
            args.earnings,
            args.years,
            args.salary_growth,
            args.investment_return,
            self.settings.upper_earnings_limit,
        )
        _emit(RetirementPotResponse.model_validate(projection))
        return 0


def main() -> int:
    """CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    cli = AutoEnrolmentCli(settings)
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
