# mp_core/audit/services.py
from __future__ import annotations

import logging
import re
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional
from uuid import UUID

from mp_core.audit.models import AuditEvent

logger = logging.getLogger(__name__)

# "<app>.<action>", e.g. "constraints.branch_replaced"
EVENT_CODE_RE = re.compile(r"^[a-z_]+\.[a-z_]+$")


def _jsonable(value: Any) -> Any:
    """
    Audit metadata is stored as JSON. Ids, dates and amounts are written as strings.
    """
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_jsonable(v) for v in value]
        return sorted(items, key=str) if isinstance(value, (set, frozenset)) else items
    return value


class AuditService:
    """
    Audit writer for configuration changes. Must be called inside the write
    service's transaction, so a rolled-back write leaves no event behind.
    """

    @staticmethod
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        branch_id: UUID | None = None,
        actor_user_id: int | None = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> AuditEvent:
        if not EVENT_CODE_RE.match(event_code):
            raise ValueError(f"Audit event code must look like 'app.action', got {event_code!r}")

        event = AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            branch_id=branch_id,
            actor_user_id=actor_user_id,
            metadata=_jsonable(dict(metadata or {})),
        )
        logger.debug("Audit %s %s=%s branch=%s actor=%s", event_code, entity_type, entity_id, branch_id, actor_user_id)
        return event
