# mc_core/audit/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from mc_core.audit.models import AuditEvent


def list_audit_events() -> QuerySet[AuditEvent]:
    """Whole trail, newest first. Narrowed by AuditEventFilter at the API."""
    return AuditEvent.objects.select_related("actor_user").order_by("-occurred_at", "-id")

