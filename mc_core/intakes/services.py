# mc_core/intakes/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from mc_core.audit.services import AuditService
from mc_core.common.actor import Actor
from mc_core.common.errors import ForbiddenError, NotFoundError, PersistenceError
from mc_core.intakes.dispense import DispenseEvent
from mc_core.intakes.models import IntakeStatus, MedicationIntake
from mc_core.intakes.repository import IntakeRepository
from mc_core.intakes.schedule import DEFAULT_FIRST_DOSE_HOUR, calculate_schedule
from mc_core.prescriptions.models import Medication, PrescriptionItem

FORBIDDEN_INTAKE_MSG = "You do not have permission to modify this intake."


@dataclass
class RecalculationResult:
    deleted_count: int
    created: list[MedicationIntake] = field(default_factory=list)


class IntakeSchedulingService:
    """
    Turns a dispensed prescription item into persisted MedicationIntake rows.

    Notes:
    - Does not own transaction boundaries for creation: rows join the caller's
      transaction when there is one (a savepoint otherwise keeps the batch whole).
    - Recalculation is one transaction: lock item, drop pending, recreate.
    - Taken intakes are history and are never deleted here.
    """

    def __init__(self, *, repository: Optional[IntakeRepository] = None, logger: Optional[logging.Logger] = None):
        self.repository = repository or IntakeRepository()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def first_dose_hour(self) -> int:
        return getattr(settings, "MEDICAPP_FIRST_DOSE_HOUR", DEFAULT_FIRST_DOSE_HOUR)

    # -------------------------
    # Create
    # -------------------------
    def create_intakes_for_item(
        self,
        item: PrescriptionItem,
        medication: Medication,
        dispatch_date,
        dispatch_time=None,
        *,
        actor_user_id: int | None = None,
    ) -> list[MedicationIntake]:
        event = DispenseEvent.build(
            item=item,
            medication=medication,
            dispatch_date=dispatch_date,
            dispatch_time=dispatch_time,
        )
        return self.schedule_event(event, actor_user_id=actor_user_id)

    def schedule_event(self, event: DispenseEvent, *, actor_user_id: int | None = None) -> list[MedicationIntake]:
        # No dispatch yet -> nothing to schedule
        if not event.is_dispatched:
            self.logger.debug("intakes.skipped_not_dispatched", extra={"prescription_item_id": event.item.pk})
            return []

        timestamps = calculate_schedule(
            event.dispatch_at(),
            event.duration_days,
            event.dispensed_quantity,
            first_dose_hour=self.first_dose_hour,
        )

        records = [
            MedicationIntake(prescription_item_id=event.item.pk, scheduled_time=ts, taken=False)
            for ts in timestamps
        ]

        with transaction.atomic():
            created = self.repository.create_many(records)
            AuditService.log(
                event_code="intakes.scheduled",
                entity=event.item,
                actor_user_id=actor_user_id,
                metadata={
                    "count": len(created),
                    "duration_days": event.duration_days,
                    "dispensed_quantity": event.dispensed_quantity,
                    "first": timestamps[0].isoformat() if timestamps else None,
                },
            )

        self.logger.info(
            "intakes.scheduled",
            extra={
                "prescription_item_id": event.item.pk,
                "medication_id": event.medication.pk,
                "count": len(created),
                "duration_days": event.duration_days,
                "dispensed_quantity": event.dispensed_quantity,
            },
        )
        return created

    # -------------------------
    # Recalculate
    # -------------------------
    @transaction.atomic
    def recalculate_intakes_for_item(self, item_id: int, *, actor_user_id: int | None = None) -> RecalculationResult:
        try:
            item = PrescriptionItem.objects.select_for_update().get(pk=item_id)
        except PrescriptionItem.DoesNotExist:
            raise NotFoundError(f"Prescription item {item_id} not found.", kind="PrescriptionItemNotFound")

        deleted = self.repository.delete_pending_by_prescription_item(item.pk)
        created = self.schedule_event(DispenseEvent.from_item(item), actor_user_id=actor_user_id)

        AuditService.log(
            event_code="intakes.recalculated",
            entity=item,
            actor_user_id=actor_user_id,
            metadata={"deleted": deleted, "created": len(created)},
        )
        self.logger.info(
            "intakes.recalculated",
            extra={"prescription_item_id": item.pk, "deleted_count": deleted, "created_count": len(created)},
        )
        return RecalculationResult(deleted_count=deleted, created=created)


class IntakeStateService:
    """
    PENDING <-> TAKEN transitions of a single intake.

    PENDING -> TAKEN sets taken_time = now; TAKEN -> PENDING clears it.
    Only the patient who owns the prescription may move an intake.
    The intake row is locked for the duration of the transition.
    """

    def __init__(
        self,
        *,
        repository: Optional[IntakeRepository] = None,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable] = None,
    ):
        self.repository = repository or IntakeRepository()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or timezone.now

    def _load_owned(self, intake_id: int, actor: Actor) -> MedicationIntake:
        intake = self.repository.get_for_update(intake_id)
        if intake is None:
            raise NotFoundError("Intake not found.", kind="IntakeNotFound")

        if actor is None or actor.patient_id is None:
            raise NotFoundError("No patient record is linked to this user.", kind="PatientProfileMissing")

        owner_patient_id = intake.prescription_item.prescription.patient_id
        if owner_patient_id != actor.patient_id:
            self.logger.warning(
                "intake.ownership_denied",
                extra={"intake_id": intake_id, "actor_user_id": actor.user_id, "actor_patient_id": actor.patient_id},
            )
            raise ForbiddenError(FORBIDDEN_INTAKE_MSG)

        return intake

    def _transition(self, intake: MedicationIntake, *, taken: bool) -> MedicationIntake:
        taken_time = self.clock() if taken else None
        changed = self.repository.update(
            intake.pk,
            expected={"taken": intake.taken},
            taken=taken,
            taken_time=taken_time,
        )
        if not changed:
            raise PersistenceError("Intake changed concurrently.", kind="ConcurrentUpdate")
        intake.taken = taken
        intake.taken_time = taken_time
        return intake

    def _record(self, *, event_code: str, intake: MedicationIntake, actor: Actor, previous: str) -> None:
        AuditService.log(
            event_code=event_code,
            entity=intake,
            actor_user_id=actor.user_id,
            metadata={
                "previous_status": previous,
                "status": intake.status,
                "taken_time": intake.taken_time.isoformat() if intake.taken_time else None,
            },
        )
        self.logger.info(
            event_code,
            extra={
                "intake_id": intake.pk,
                "prescription_item_id": intake.prescription_item_id,
                "previous_status": previous,
                "status": intake.status,
            },
        )

    @transaction.atomic
    def toggle(self, intake_id: int, actor: Actor) -> MedicationIntake:
        intake = self._load_owned(intake_id, actor)

        previous = intake.status
        self._transition(intake, taken=not intake.taken)

        self._record(event_code="intake.toggled", intake=intake, actor=actor, previous=previous)
        return intake

    @transaction.atomic
    def mark_taken(self, intake_id: int, actor: Actor) -> MedicationIntake:
        """
        One-way PENDING -> TAKEN. Idempotent: an already TAKEN intake is
        returned as-is and keeps its original taken_time.
        """
        intake = self._load_owned(intake_id, actor)

        if intake.status == IntakeStatus.TAKEN:
            return intake

        self._transition(intake, taken=True)

        self._record(event_code="intake.marked_taken", intake=intake, actor=actor, previous=IntakeStatus.PENDING)
        return intake
