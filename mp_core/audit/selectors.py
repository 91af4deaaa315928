# mp_core/audit/selectors.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from django.db.models import QuerySet

from mp_core.audit.models import AuditEvent


def list_audit_events(
    *,
    branch_id: UUID | None = None,
    entity_type: str | None = None,
    entity_id: UUID | None = None,
    event_code: str | None = None,
    app: str | None = None,
    since: datetime | None = None,
) -> QuerySet[AuditEvent]:
    """
    Newest first. `app` matches the event code prefix, e.g. app="doctors"
    returns every doctors.* event.
    """
    qs = AuditEvent.objects.all()

    if branch_id:
        qs = qs.filter(branch_id=branch_id)
    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if event_code:
        qs = qs.filter(event_code=event_code)
    elif app:
        qs = qs.filter(event_code__startswith=f"{app}.")
    if since is not None:
        qs = qs.filter(occurred_at__gte=since)

    return qs.order_by("-occurred_at", "-id")
