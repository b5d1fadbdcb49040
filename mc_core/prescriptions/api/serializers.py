# mc_core/prescriptions/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from mc_core.prescriptions.models import Medication, Prescription, PrescriptionItem
from mc_core.prescriptions.selectors import prescription_status


class MedicationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Medication
        fields = ["id", "code", "description", "unit", "duration_days", "price"]
        read_only_fields = fields


class PrescriptionItemSerializer(serializers.ModelSerializer):
    medication = MedicationSerializer(read_only=True)
    is_dispatched = serializers.BooleanField(read_only=True)
    is_completed = serializers.BooleanField(read_only=True)

    class Meta:
        model = PrescriptionItem
        fields = [
            "id",
            "prescription_id",
            "medication",
            "requested_quantity",
            "dispensed_quantity",
            "dispatch_date",
            "dispatch_time",
            "dx_code",
            "dx_description",
            "is_dispatched",
            "is_completed",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PrescriptionSerializer(serializers.ModelSerializer):
    items = PrescriptionItemSerializer(many=True, read_only=True)
    status = serializers.SerializerMethodField()

    class Meta:
        model = Prescription
        fields = [
            "id",
            "number",
            "issued_on",
            "patient_id",
            "prescriber_id",
            "prescriber_name",
            "status",
            "items",
            "created_at",
        ]
        read_only_fields = fields

    def get_status(self, obj) -> str:
        return prescription_status(obj)


class DispatchUpdateSerializer(serializers.Serializer):
    requested_quantity = serializers.IntegerField(required=False, min_value=0)
    dispensed_quantity = serializers.IntegerField(required=False, min_value=0)
    dispatch_date = serializers.DateField(required=False, allow_null=True)
    dispatch_time = serializers.TimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide at least one dispatch field.")
        if attrs.get("dispatch_time") and "dispatch_date" in attrs and attrs["dispatch_date"] is None:
            raise serializers.ValidationError({"dispatch_time": "dispatch_time requires a dispatch_date."})
        return attrs


class DispatchResultSerializer(serializers.Serializer):
    item = PrescriptionItemSerializer()
    outcome = serializers.CharField()
    deleted_count = serializers.IntegerField()
    created_count = serializers.SerializerMethodField()

    def get_created_count(self, obj) -> int:
        return len(obj.created)


class RecalculationResultSerializer(serializers.Serializer):
    deleted_count = serializers.IntegerField()
    created_count = serializers.SerializerMethodField()

    def get_created_count(self, obj) -> int:
        return len(obj.created)


class AdminPrescriptionSerializer(PrescriptionSerializer):
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    patient_document_id = serializers.CharField(source="patient.document_id", read_only=True)

    class Meta(PrescriptionSerializer.Meta):
        fields = PrescriptionSerializer.Meta.fields + ["patient_name", "patient_document_id"]
        read_only_fields = fields
