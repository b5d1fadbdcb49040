from django.contrib import admin

from mc_core.prescriptions.models import Medication, Prescription, PrescriptionItem


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ("code", "description", "unit", "duration_days", "price")
    search_fields = ("code", "description")
    ordering = ("code",)


class PrescriptionItemInline(admin.TabularInline):
    model = PrescriptionItem
    extra = 0
    raw_id_fields = ("medication",)
    fields = ("medication", "requested_quantity", "dispensed_quantity", "dispatch_date", "dispatch_time")


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "number", "issued_on", "patient", "prescriber_name", "created_at")
    search_fields = ("number", "patient__document_id", "patient__full_name")
    list_filter = ("issued_on",)
    ordering = ("-issued_on",)
    raw_id_fields = ("patient", "prescriber")
    list_select_related = ("patient",)
    inlines = [PrescriptionItemInline]


@admin.register(PrescriptionItem)
class PrescriptionItemAdmin(admin.ModelAdmin):
    list_display = ("id", "prescription", "medication", "dispensed_quantity", "dispatch_date", "dispatch_time")
    search_fields = ("prescription__number", "medication__code", "medication__description")
    list_filter = ("dispatch_date",)
    raw_id_fields = ("prescription", "medication")
    list_select_related = ("prescription", "medication")
