# mc_core/intakes/filters.py
from django_filters import rest_framework as filters

from mc_core.intakes.models import MedicationIntake


class MedicationIntakeFilter(filters.FilterSet):
    scheduled_after = filters.IsoDateTimeFilter(field_name="scheduled_time", lookup_expr="gte")
    scheduled_before = filters.IsoDateTimeFilter(field_name="scheduled_time", lookup_expr="lt")

    class Meta:
        model = MedicationIntake
        fields = ["taken", "reminder_sent", "scheduled_after", "scheduled_before"]
