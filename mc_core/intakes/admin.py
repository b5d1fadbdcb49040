from django.contrib import admin

from mc_core.intakes.models import MedicationIntake


@admin.register(MedicationIntake)
class MedicationIntakeAdmin(admin.ModelAdmin):
    list_display = ("id", "prescription_item", "scheduled_time", "taken", "taken_time", "reminder_sent")
    list_filter = ("taken", "reminder_sent")
    search_fields = ("prescription_item__prescription__number", "prescription_item__medication__description")
    ordering = ("-scheduled_time",)
    date_hierarchy = "scheduled_time"
    raw_id_fields = ("prescription_item",)
    # state changes go through the intake service so the audit trail stays complete
    readonly_fields = ("taken", "taken_time", "created_at", "updated_at")
    list_select_related = ("prescription_item",)
