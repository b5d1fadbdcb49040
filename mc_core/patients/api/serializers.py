# mc_core/patients/api/serializers.py
from rest_framework import serializers

from mc_core.patients.models import Patient


class PatientSerializer(serializers.ModelSerializer):
    has_account = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = ["id", "document_id", "full_name", "sex", "insurance_type", "patient_type", "has_account"]
        read_only_fields = fields

    def get_has_account(self, obj) -> bool:
        return obj.user_id is not None
