# mc_core/patients/models.py
from django.conf import settings
from django.db import models

from mc_core.common.models import TimeStampedModel


class Sex(models.TextChoices):
    MALE = "M", "Male"
    FEMALE = "F", "Female"


class Patient(TimeStampedModel):
    """
    Patient record. `user` links the record to a login so the patient can act
    on their own intakes; records imported from pharmacy files start unlinked.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="patient_profile",
        null=True,
        blank=True,
    )

    # national identity document (DNI)
    document_id = models.CharField(max_length=16, unique=True)
    full_name = models.CharField(max_length=255)
    sex = models.CharField(max_length=1, choices=Sex.choices, blank=True)
    insurance_type = models.CharField(max_length=64, blank=True)
    patient_type = models.CharField(max_length=64, blank=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["full_name"], name="patient_full_name_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.document_id})"
