# mc_core/audit/filters.py
from django_filters import rest_framework as filters

from mc_core.audit.models import AuditEvent


class AuditEventFilter(filters.FilterSet):
    actor_user_id = filters.NumberFilter(field_name="actor_user_id")
    occurred_after = filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="gte")
    occurred_before = filters.IsoDateTimeFilter(field_name="occurred_at", lookup_expr="lt")

    class Meta:
        model = AuditEvent
        fields = ["entity_type", "entity_id", "event_code", "actor_user_id", "occurred_after", "occurred_before"]
