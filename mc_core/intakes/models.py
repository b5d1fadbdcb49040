# mc_core/intakes/models.py
from django.db import models
from django.db.models import Q

from mc_core.common.models import TimeStampedModel
from mc_core.prescriptions.models import PrescriptionItem


class IntakeStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    TAKEN = "TAKEN", "Taken"


class MedicationIntake(TimeStampedModel):
    """
    One scheduled dose of a dispensed prescription item.

    scheduled_time only changes through a full recalculation of the item;
    taken/taken_time only through the intake state service.
    """
    prescription_item = models.ForeignKey(
        PrescriptionItem,
        on_delete=models.CASCADE,
        related_name="intakes",
    )

    scheduled_time = models.DateTimeField(db_index=True)

    taken = models.BooleanField(default=False)
    taken_time = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True)
    reminder_sent = models.BooleanField(default=False)

    class Meta:
        db_table = "intakes_medication_intake"
        ordering = ["scheduled_time", "id"]
        indexes = [
            models.Index(fields=["prescription_item", "scheduled_time"], name="intake_item_sched_idx"),
            models.Index(fields=["taken", "scheduled_time"], name="intake_taken_sched_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(taken=True, taken_time__isnull=False) | Q(taken=False, taken_time__isnull=True),
                name="ck_intake_taken_time_matches_taken",
            ),
        ]

    @property
    def status(self) -> str:
        return IntakeStatus.TAKEN if self.taken else IntakeStatus.PENDING

    def __str__(self) -> str:
        return f"Intake {self.pk} @ {self.scheduled_time:%Y-%m-%d %H:%M} ({self.status})"
