# mc_core/intakes/repository.py
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterable

from django.db import DatabaseError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from mc_core.common.errors import PersistenceError
from mc_core.intakes.models import MedicationIntake


@contextmanager
def _storage_errors(operation: str):
    try:
        yield
    except DatabaseError as exc:
        raise PersistenceError(f"Intake storage failed during {operation}.", details={"operation": operation}) from exc


class IntakeRepository:
    """
    The only write path for MedicationIntake rows.
    Reads always hit the database; nothing is cached.
    """

    model = MedicationIntake

    def _owner_chain(self) -> QuerySet[MedicationIntake]:
        return self.model.objects.select_related(
            "prescription_item",
            "prescription_item__medication",
            "prescription_item__prescription",
        )

    # -------------------------
    # Writes
    # -------------------------
    def create(self, record: MedicationIntake) -> MedicationIntake:
        with _storage_errors("create"):
            record.save(force_insert=True)
        return record

    def create_many(self, records: Iterable[MedicationIntake]) -> list[MedicationIntake]:
        """
        Single INSERT for the batch; input order (ascending schedule) is kept.
        """
        records = list(records)
        if not records:
            return []
        with _storage_errors("create_many"):
            return self.model.objects.bulk_create(records)

    def delete_pending_by_prescription_item(self, item_id: int) -> int:
        """
        Deletes not-yet-taken intakes of the item. Taken intakes are never
        touched. Pending rows are locked first so a concurrent toggle either
        lands before (row is then taken and survives) or waits.
        """
        with _storage_errors("delete_pending"), transaction.atomic():
            pending_ids = list(
                self.model.objects.select_for_update()
                .filter(prescription_item_id=item_id, taken=False)
                .values_list("id", flat=True)
            )
            if not pending_ids:
                return 0
            _, per_model = self.model.objects.filter(id__in=pending_ids, taken=False).delete()
        return per_model.get(self.model._meta.label, 0)

    def update(self, intake_id: int, *, expected: dict | None = None, **fields) -> int:
        """
        Field update with optional compare-and-set on `expected`.
        Returns the number of rows changed (0 means the expectation failed).
        """
        qs = self.model.objects.filter(id=intake_id)
        if expected:
            qs = qs.filter(**expected)
        fields.setdefault("updated_at", timezone.now())
        with _storage_errors("update"):
            return qs.update(**fields)

    # -------------------------
    # Reads
    # -------------------------
    def get_with_owner(self, intake_id: int, *, for_update: bool = False) -> MedicationIntake | None:
        qs = self._owner_chain()
        if for_update:
            qs = qs.select_for_update()
        with _storage_errors("get"):
            return qs.filter(id=intake_id).first()

    def find_by_prescription_item(self, item_id: int) -> QuerySet[MedicationIntake]:
        return self._owner_chain().filter(prescription_item_id=item_id).order_by("scheduled_time", "id")

    def find_by_patient(self, patient_id: int) -> QuerySet[MedicationIntake]:
        return self._owner_chain().filter(prescription_item__prescription__patient_id=patient_id)

    def find_by_patient_and_date_range(self, patient_id: int, start: datetime, end: datetime) -> QuerySet[MedicationIntake]:
        """
        Intakes scheduled in [start, end).
        """
        return (
            self.find_by_patient(patient_id)
            .filter(scheduled_time__gte=start, scheduled_time__lt=end)
            .order_by("scheduled_time", "id")
        )

    def get_for_update(self, intake_id: int) -> MedicationIntake | None:
        """
        Intake with its item/prescription chain, row-locked until the
        surrounding transaction ends.
        """
        return self.get_with_owner(intake_id, for_update=True)
