# mc_core/audit/services.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from django.db import transaction

from mc_core.audit.models import AuditEvent


@dataclass(frozen=True)
class AuditRecord:
    id: int
    event_code: str
    entity_type: str
    entity_id: str
    actor_user_id: int | None
    occurred_at: datetime
    metadata: Dict[str, Any]

    @classmethod
    def from_event(cls, event: AuditEvent) -> "AuditRecord":
        return cls(
            id=event.pk,
            event_code=event.event_code,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            actor_user_id=event.actor_user_id,
            occurred_at=event.occurred_at,
            metadata=event.metadata,
        )


def entity_type_for(instance) -> str:
    return instance._meta.object_name


class AuditService:
    """
    Single writer of the audit trail.

    Services call it right after the mutation it describes, inside the same
    transaction, so a rollback drops the audit row too. Pass either the
    model instance (`entity=`) or an explicit `entity_type`/`entity_id`.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        actor_user_id: int | None,
        entity=None,
        entity_type: str | None = None,
        entity_id=None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        if entity is not None:
            entity_type = entity_type or entity_type_for(entity)
            entity_id = entity.pk if entity_id is None else entity_id
        if not entity_type or entity_id is None:
            raise ValueError(f"Audit event {event_code!r} needs an entity type and id.")

        event = AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_user_id=actor_user_id,
            metadata=dict(metadata or {}),
        )
        return AuditRecord.from_event(event)
