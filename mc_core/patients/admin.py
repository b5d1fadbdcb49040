from django.contrib import admin

from mc_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("id", "document_id", "full_name", "sex", "user", "created_at")
    search_fields = ("document_id", "full_name")
    list_filter = ("sex", "patient_type")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at")
    list_select_related = ("user",)
