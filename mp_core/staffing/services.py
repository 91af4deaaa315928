# mp_core/staffing/services.py
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.branches.selectors import list_branches
from mp_core.common.dates import date_range
from mp_core.staffing.models import BranchQuotaSummary, PositionQuotaSummary
from mp_core.staffing.quota import BranchQuotaStatus, aggregate_quota_status

logger = logging.getLogger(__name__)


class QuotaSummaryService:
    """
    Persists aggregator snapshots. Re-running for the same branch/date
    overwrites the rows in place.
    """

    @staticmethod
    @transaction.atomic
    def save_status(status: BranchQuotaStatus) -> BranchQuotaSummary:
        summary, _ = BranchQuotaSummary.objects.update_or_create(
            branch_id=status.branch_id,
            date=status.date,
            defaults={
                "is_operational": status.is_operational,
                "total_designated": status.total_designated,
                "total_available": status.total_available,
                "total_assigned": status.total_assigned,
                "total_required": status.total_required,
                "staff_groups": [g.to_dict() for g in status.staff_groups],
                "missing_required_staff": list(status.missing_required_staff),
            },
        )

        keep = [p.position_id for p in status.position_statuses]
        PositionQuotaSummary.objects.filter(branch_id=status.branch_id, date=status.date).exclude(
            position_id__in=keep
        ).delete()
        for p in status.position_statuses:
            PositionQuotaSummary.objects.update_or_create(
                branch_id=status.branch_id,
                position_id=p.position_id,
                date=status.date,
                defaults={
                    "designated_quota": p.designated_quota,
                    "minimum_required": p.minimum_required,
                    "available_local": p.available_local,
                    "assigned_rotation": p.assigned_rotation,
                    "total_assigned": p.total_assigned,
                    "still_required": p.still_required,
                },
            )
        return summary

    @staticmethod
    def refresh(*, branch_id: UUID, on_date: date) -> BranchQuotaSummary:
        status = aggregate_quota_status(branch_id=branch_id, on_date=on_date)
        return QuotaSummaryService.save_status(status)

    @staticmethod
    def refresh_range(
        *,
        start: date,
        end: date,
        branch_ids: Optional[Iterable[UUID]] = None,
    ) -> int:
        """
        Recompute every branch/date in [start, end]. Returns the number of
        snapshots written.
        """
        if start > end:
            raise ValidationError({"end": "end must be on or after start."})

        ids = list(branch_ids) if branch_ids is not None else list(list_branches().values_list("id", flat=True))
        written = 0
        for branch_id in ids:
            for d in date_range(start, end):
                QuotaSummaryService.refresh(branch_id=branch_id, on_date=d)
                written += 1
        logger.info("Quota summaries refreshed branches=%s %s..%s (%s rows)", len(ids), start, end, written)
        return written
