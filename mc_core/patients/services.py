# mc_core/patients/services.py
from __future__ import annotations

from django.db import transaction

from mc_core.patients.models import Patient


class PatientService:
    @staticmethod
    @transaction.atomic
    def find_or_create(
        *,
        document_id: str,
        full_name: str,
        sex: str = "",
        insurance_type: str = "",
        patient_type: str = "",
    ) -> tuple[Patient, bool]:
        """
        Idempotent per document_id. Existing records are returned untouched.
        """
        return Patient.objects.get_or_create(
            document_id=document_id,
            defaults={
                "full_name": full_name,
                "sex": sex or "",
                "insurance_type": insurance_type or "",
                "patient_type": patient_type or "",
            },
        )

    @staticmethod
    @transaction.atomic
    def link_user(*, patient_id: int, user) -> Patient:
        patient = Patient.objects.select_for_update().get(id=patient_id)
        if patient.user_id == user.pk:
            return patient
        patient.user = user
        patient.save(update_fields=["user", "updated_at"])
        return patient
