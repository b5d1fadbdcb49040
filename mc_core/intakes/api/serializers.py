# mc_core/intakes/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from mc_core.intakes.models import MedicationIntake


class MedicationIntakeSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)
    medication_id = serializers.IntegerField(source="prescription_item.medication_id", read_only=True)
    medication_name = serializers.CharField(source="prescription_item.medication.description", read_only=True)
    unit = serializers.CharField(source="prescription_item.medication.unit", read_only=True)
    prescription_id = serializers.IntegerField(source="prescription_item.prescription_id", read_only=True)

    class Meta:
        model = MedicationIntake
        fields = [
            "id",
            "prescription_item_id",
            "prescription_id",
            "medication_id",
            "medication_name",
            "unit",
            "scheduled_time",
            "taken",
            "taken_time",
            "status",
            "notes",
            "reminder_sent",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class DailyProgressSerializer(serializers.Serializer):
    date = serializers.DateField()
    total = serializers.IntegerField()
    taken = serializers.IntegerField()
    pending = serializers.IntegerField()
    percentage = serializers.IntegerField()
    intakes = MedicationIntakeSerializer(many=True)


class MedicationDaySerializer(serializers.Serializer):
    medication_id = serializers.IntegerField()
    name = serializers.CharField()
    unit = serializers.CharField()
    total = serializers.IntegerField()
    taken = serializers.IntegerField()
    times = serializers.ListField(child=serializers.CharField())
    date_taken = serializers.ListField(child=serializers.CharField())
    intakes = MedicationIntakeSerializer(many=True)


class HistoryStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    taken = serializers.IntegerField()
    pending = serializers.IntegerField()
    compliance_rate = serializers.FloatField()


class PeriodComplianceSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    taken = serializers.IntegerField()
    compliance = serializers.FloatField()


class MedicationComplianceSerializer(PeriodComplianceSerializer):
    id = serializers.IntegerField()
    name = serializers.CharField()


class IntakeHistorySerializer(serializers.Serializer):
    intakes = MedicationIntakeSerializer(many=True)
    stats = HistoryStatsSerializer()
    monthly_breakdown = serializers.DictField(child=PeriodComplianceSerializer())


class PatientSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    document_id = serializers.CharField()
    full_name = serializers.CharField()


class PatientIntakeHistorySerializer(IntakeHistorySerializer):
    patient = PatientSummarySerializer()
    medication_groups = MedicationComplianceSerializer(many=True)


class PendingIntakesSerializer(serializers.Serializer):
    past = MedicationIntakeSerializer(many=True)
    today = MedicationIntakeSerializer(many=True)
    upcoming = MedicationIntakeSerializer(many=True)
