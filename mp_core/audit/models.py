# mp_core/audit/models.py
from django.db import models

from mp_core.common.models import UUIDModel


class AuditEvent(UUIDModel):
    """
    Immutable audit record for configuration writes
    (constraints, doctor schedules, scenarios, quotas).
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "constraints.branch_replaced"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Branch"
    entity_id = models.UUIDField(db_index=True)

    # Branch the change affects, when there is one
    branch_id = models.UUIDField(null=True, blank=True, db_index=True)

    # auth user id (plain column, no FK)
    actor_user_id = models.BigIntegerField(null=True, blank=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["branch_id", "occurred_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
        ]
