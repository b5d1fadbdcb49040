# mc_core/audit/admin.py
from django.contrib import admin

from mc_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    """Browse-only: the trail is written by services and never edited."""

    list_display = ("occurred_at", "event_code", "entity_type", "entity_id", "actor_user")
    list_filter = ("event_code", "entity_type")
    search_fields = ("entity_id", "actor_user__username")
    list_select_related = ("actor_user",)
    date_hierarchy = "occurred_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
