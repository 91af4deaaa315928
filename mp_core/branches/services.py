# mp_core/branches/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from mp_core.audit.services import AuditService
from mp_core.branches.models import Branch, Position, PositionQuota, StaffGroup, StaffGroupPosition
from mp_core.common.exceptions import get_or_not_found
from mp_core.common.values import coerce_uuid, is_count

logger = logging.getLogger(__name__)


class PositionQuotaService:
    @staticmethod
    def _validate(*, position: Position, designated_quota: int, minimum_required: int) -> None:
        errors: dict[str, str] = {}
        if position.is_rotation:
            errors["position_id"] = "Quotas cannot be defined for rotation positions."
        if not is_count(designated_quota):
            errors["designated_quota"] = "Must be an integer >= 0."
        if not is_count(minimum_required):
            errors["minimum_required"] = "Must be an integer >= 0."
        if not errors and minimum_required > designated_quota:
            errors["minimum_required"] = "Cannot exceed designated_quota."
        if errors:
            raise ValidationError(errors)

    @staticmethod
    @transaction.atomic
    def set_quota(
        *,
        branch_id: UUID,
        position_id: UUID,
        designated_quota: int,
        minimum_required: int,
        is_active: bool = True,
        actor_user_id: int | None = None,
    ) -> PositionQuota:
        branch = get_or_not_found(Branch, label="Branch", id=branch_id)
        position = get_or_not_found(Position, label="Position", id=position_id)
        PositionQuotaService._validate(
            position=position,
            designated_quota=designated_quota,
            minimum_required=minimum_required,
        )

        quota, created = PositionQuota.objects.update_or_create(
            branch=branch,
            position=position,
            defaults={
                "designated_quota": designated_quota,
                "minimum_required": minimum_required,
                "is_active": bool(is_active),
            },
        )

        AuditService.log(
            event_code="quotas.position_set",
            entity_type="PositionQuota",
            entity_id=quota.id,
            branch_id=branch.id,
            actor_user_id=actor_user_id,
            metadata={
                "position_id": position.id,
                "designated_quota": designated_quota,
                "minimum_required": minimum_required,
                "created": created,
            },
        )
        logger.info("Position quota set branch=%s position=%s (%s/%s)", branch.code, position.name, designated_quota, minimum_required)
        return quota


class StaffGroupService:
    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        description: str = "",
        position_ids: Iterable[UUID] = (),
        is_active: bool = False,
    ) -> StaffGroup:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "Staff group name is required."})
        if StaffGroup.objects.filter(name=name).exists():
            raise ValidationError({"name": "A staff group with this name already exists."})

        group = StaffGroup.objects.create(name=name, description=description or "", is_active=bool(is_active))
        StaffGroupService.set_positions(staff_group_id=group.id, position_ids=position_ids)
        return group

    @staticmethod
    @transaction.atomic
    def set_positions(*, staff_group_id: UUID, position_ids: Iterable[UUID]) -> StaffGroup:
        """
        Bulk replace of the group's member positions.
        """
        group = get_or_not_found(StaffGroup.objects.select_for_update(), label="Staff group", id=staff_group_id)
        wanted = list(dict.fromkeys(coerce_uuid(pid, "position_ids") for pid in position_ids))

        found = set(Position.objects.filter(id__in=wanted).values_list("id", flat=True))
        missing = [str(pid) for pid in wanted if pid not in found]
        if missing:
            raise ValidationError({"position_ids": f"Unknown positions: {', '.join(missing)}"})

        StaffGroupPosition.objects.filter(staff_group=group).delete()
        StaffGroupPosition.objects.bulk_create(
            [StaffGroupPosition(staff_group=group, position_id=pid) for pid in wanted]
        )
        return group

    @staticmethod
    @transaction.atomic
    def set_active(*, staff_group_id: UUID, is_active: bool) -> StaffGroup:
        group = get_or_not_found(StaffGroup.objects.select_for_update(), label="Staff group", id=staff_group_id)
        if group.is_active == bool(is_active):
            return group
        group.is_active = bool(is_active)
        group.save(update_fields=["is_active", "updated_at"])
        logger.info("Staff group %s is_active=%s", group.name, group.is_active)
        return group
