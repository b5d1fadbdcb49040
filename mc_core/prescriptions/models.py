# mc_core/prescriptions/models.py
from django.conf import settings
from django.db import models

from mc_core.common.models import TimeStampedModel
from mc_core.patients.models import Patient


class Medication(TimeStampedModel):
    code = models.CharField(max_length=64, unique=True)
    description = models.TextField()
    unit = models.CharField(max_length=32, blank=True)

    # Treatment length in days as it arrives from pharmacy files ("7", "30", "").
    # Parsed by the intake schedule; anything unusable counts as 1 day.
    duration_days = models.CharField(max_length=32, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = "prescriptions_medication"

    def __str__(self) -> str:
        return f"{self.code} {self.description}"


class PrescriptionStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"


class Prescription(TimeStampedModel):
    number = models.CharField(max_length=64)
    issued_on = models.DateField()

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="prescriptions")
    prescriber = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="issued_prescriptions",
        null=True,
        blank=True,
    )
    prescriber_name = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "prescriptions_prescription"
        constraints = [
            models.UniqueConstraint(fields=["number", "patient"], name="uq_prescription_number_per_patient"),
        ]
        indexes = [
            models.Index(fields=["patient", "issued_on"], name="rx_patient_issued_idx"),
        ]

    def __str__(self) -> str:
        return f"Rx {self.number}"


class PrescriptionItem(TimeStampedModel):
    """
    One medication line of a prescription. Dispatch fields are filled when the
    pharmacy hands the medication out; that is what triggers the intake schedule.
    """
    prescription = models.ForeignKey(Prescription, on_delete=models.CASCADE, related_name="items")
    medication = models.ForeignKey(Medication, on_delete=models.PROTECT, related_name="prescription_items")

    requested_quantity = models.PositiveIntegerField(default=0)
    dispensed_quantity = models.PositiveIntegerField(default=0)

    dispatch_date = models.DateField(null=True, blank=True)
    dispatch_time = models.TimeField(null=True, blank=True)

    dx_code = models.CharField(max_length=32, blank=True)
    dx_description = models.TextField(blank=True)

    class Meta:
        db_table = "prescriptions_item"
        indexes = [
            models.Index(fields=["prescription", "medication"], name="rx_item_rx_med_idx"),
        ]

    @property
    def is_dispatched(self) -> bool:
        return self.dispatch_date is not None

    @property
    def is_completed(self) -> bool:
        # list selectors annotate the counts; otherwise ask the database
        total = getattr(self, "intake_total", None)
        pending = getattr(self, "intake_pending", None)
        if total is None or pending is None:
            total = self.intakes.count()
            pending = self.intakes.filter(taken=False).count()
        return total > 0 and pending == 0

    def __str__(self) -> str:
        return f"Item {self.pk} of Rx {self.prescription_id}"
