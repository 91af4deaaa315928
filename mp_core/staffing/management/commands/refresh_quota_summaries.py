# mp_core/staffing/management/commands/refresh_quota_summaries.py
from __future__ import annotations

from datetime import date

from django.core.management.base import BaseCommand, CommandError

from mp_core.branches.models import Branch
from mp_core.staffing.services import QuotaSummaryService


class Command(BaseCommand):
    help = "Recompute BranchQuotaSummary/PositionQuotaSummary snapshots for a date range. Safe to re-run."

    def add_arguments(self, parser):
        parser.add_argument("--start", type=str, required=True, help="First date (YYYY-MM-DD).")
        parser.add_argument("--end", type=str, default=None, help="Last date (YYYY-MM-DD). Defaults to --start.")
        parser.add_argument("--branch-code", type=str, default=None, help="Optional branch code filter.")

    def handle(self, *args, **opts):
        try:
            start = date.fromisoformat(opts["start"])
            end = date.fromisoformat(opts["end"]) if opts["end"] else start
        except ValueError as exc:
            raise CommandError(f"Invalid date: {exc}")
        if start > end:
            raise CommandError("--end must be on or after --start")

        branch_ids = None
        if opts["branch_code"]:
            branch = Branch.objects.filter(code=opts["branch_code"]).first()
            if branch is None:
                raise CommandError(f"Unknown branch code: {opts['branch_code']}")
            branch_ids = [branch.id]

        written = QuotaSummaryService.refresh_range(start=start, end=end, branch_ids=branch_ids)

        self.stdout.write(f"Date range: {start.isoformat()}..{end.isoformat()}")
        self.stdout.write(f"Snapshots written: {written}")
