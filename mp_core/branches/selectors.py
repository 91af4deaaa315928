# mp_core/branches/selectors.py
from __future__ import annotations

from typing import Iterable
from uuid import UUID

from django.db.models import QuerySet

from mp_core.branches.models import Branch, Position, PositionQuota, StaffGroupPosition
from mp_core.common.exceptions import get_or_not_found


def branch_by_id(*, branch_id: UUID) -> Branch:
    return get_or_not_found(Branch.objects.select_related("branch_type"), label="Branch", id=branch_id)


def list_branches() -> QuerySet[Branch]:
    return Branch.objects.select_related("branch_type").order_by("code")


def position_by_id(*, position_id: UUID) -> Position:
    return get_or_not_found(Position, label="Position", id=position_id)


def positions_by_id(*, position_ids: Iterable[UUID]) -> dict[UUID, Position]:
    return {p.id: p for p in Position.objects.filter(id__in=list(position_ids))}


def active_quotas_for_branch(*, branch_id: UUID) -> QuerySet[PositionQuota]:
    return (
        PositionQuota.objects.filter(branch_id=branch_id, is_active=True)
        .select_related("position")
        .order_by("position__display_order", "position__name")
    )


def active_quota(*, branch_id: UUID, position_id: UUID) -> PositionQuota | None:
    return PositionQuota.objects.filter(branch_id=branch_id, position_id=position_id, is_active=True).first()


def staff_group_position_ids(*, staff_group_ids: Iterable[UUID]) -> dict[UUID, list[UUID]]:
    """
    staff_group_id -> member position ids (ordered by position display order).
    """
    out: dict[UUID, list[UUID]] = {gid: [] for gid in staff_group_ids}
    rows = (
        StaffGroupPosition.objects.filter(staff_group_id__in=list(out.keys()))
        .order_by("position__display_order", "position__name")
        .values_list("staff_group_id", "position_id")
    )
    for group_id, position_id in rows:
        out[group_id].append(position_id)
    return out
