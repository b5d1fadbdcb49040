# mc_core/prescriptions/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from django.db import transaction

from mc_core.audit.services import AuditService
from mc_core.common.errors import NotFoundError, ValidationError
from mc_core.intakes.dispense import INVALID_DISPENSE, DispenseEvent, parse_dispatch_date, parse_dispatch_time
from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.services import IntakeSchedulingService
from mc_core.patients.models import Patient
from mc_core.prescriptions.models import Medication, Prescription, PrescriptionItem

DISPATCH_FIELDS = ("requested_quantity", "dispensed_quantity", "dispatch_date", "dispatch_time")


class DispatchOutcome:
    UNCHANGED = "unchanged"
    UPDATED = "updated"
    SCHEDULED = "scheduled"
    RECALCULATED = "recalculated"


@dataclass
class DispatchResult:
    item: PrescriptionItem
    outcome: str
    deleted_count: int = 0
    created: list[MedicationIntake] = field(default_factory=list)


def _quantity(name: str, value) -> int:
    if value in (None, ""):
        return 0
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number.", kind=INVALID_DISPENSE, details={name: value})
    if qty < 0:
        raise ValidationError(f"{name} cannot be negative.", kind=INVALID_DISPENSE, details={name: value})
    return qty


def _price(value) -> Decimal | None:
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class PrescriptionService:
    @staticmethod
    @transaction.atomic
    def find_or_create_medication(
        *,
        code: str,
        description: str,
        unit: str = "",
        duration_days: str = "",
        price=None,
    ) -> tuple[Medication, bool]:
        return Medication.objects.get_or_create(
            code=code,
            defaults={
                "description": description,
                "unit": unit or "",
                "duration_days": duration_days or "",
                "price": _price(price),
            },
        )

    @staticmethod
    @transaction.atomic
    def find_or_create_prescription(
        *,
        number: str,
        patient: Patient,
        issued_on: date,
        prescriber=None,
        prescriber_name: str = "",
    ) -> tuple[Prescription, bool]:
        return Prescription.objects.get_or_create(
            number=number,
            patient=patient,
            defaults={
                "issued_on": issued_on,
                "prescriber": prescriber,
                "prescriber_name": prescriber_name or "",
            },
        )


class PrescriptionItemService:
    """
    Write path for prescription items. Dispatch data is what drives the intake
    schedule, so every change to it goes through here:

    - first dispatch       -> intakes are created
    - dispatch changed     -> pending intakes are recalculated
    - nothing changed      -> no-op

    The item update and the intake work share one transaction.
    """

    def __init__(
        self,
        *,
        scheduler: Optional[IntakeSchedulingService] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.scheduler = scheduler or IntakeSchedulingService(logger=self.logger)

    @transaction.atomic
    def create_item(
        self,
        *,
        prescription: Prescription,
        medication: Medication,
        requested_quantity=0,
        dispensed_quantity=0,
        dispatch_date=None,
        dispatch_time=None,
        dx_code: str = "",
        dx_description: str = "",
        actor_user_id: int | None = None,
    ) -> tuple[PrescriptionItem, list[MedicationIntake]]:
        event_date = parse_dispatch_date(dispatch_date)
        event_time = parse_dispatch_time(dispatch_time)

        item = PrescriptionItem.objects.create(
            prescription=prescription,
            medication=medication,
            requested_quantity=_quantity("requested_quantity", requested_quantity),
            dispensed_quantity=_quantity("dispensed_quantity", dispensed_quantity),
            dispatch_date=event_date,
            dispatch_time=event_time,
            dx_code=dx_code or "",
            dx_description=dx_description or "",
        )

        intakes = self.scheduler.schedule_event(
            DispenseEvent(item=item, medication=medication, dispatch_date=event_date, dispatch_time=event_time),
            actor_user_id=actor_user_id,
        )
        return item, intakes

    @transaction.atomic
    def update_dispatch(
        self,
        *,
        item_id: int,
        data: Mapping[str, Any],
        actor_user_id: int | None = None,
    ) -> DispatchResult:
        try:
            item = (
                PrescriptionItem.objects.select_for_update()
                .select_related("medication", "prescription")
                .get(pk=item_id)
            )
        except PrescriptionItem.DoesNotExist:
            raise NotFoundError(f"Prescription item {item_id} not found.", kind="PrescriptionItemNotFound")

        was_dispatched = item.is_dispatched

        changes: dict[str, Any] = {}
        for name in DISPATCH_FIELDS:
            if name not in data:
                continue
            if name == "dispatch_date":
                value = parse_dispatch_date(data[name])
            elif name == "dispatch_time":
                value = parse_dispatch_time(data[name])
            else:
                value = _quantity(name, data[name])
            if getattr(item, name) != value:
                changes[name] = value

        if not changes:
            return DispatchResult(item=item, outcome=DispatchOutcome.UNCHANGED)

        previous = {name: getattr(item, name) for name in changes}
        for name, value in changes.items():
            setattr(item, name, value)
        item.save(update_fields=[*changes.keys(), "updated_at"])

        if was_dispatched:
            recalculated = self.scheduler.recalculate_intakes_for_item(item.pk, actor_user_id=actor_user_id)
            result = DispatchResult(
                item=item,
                outcome=DispatchOutcome.RECALCULATED,
                deleted_count=recalculated.deleted_count,
                created=recalculated.created,
            )
        elif item.is_dispatched:
            created = self.scheduler.schedule_event(DispenseEvent.from_item(item), actor_user_id=actor_user_id)
            result = DispatchResult(item=item, outcome=DispatchOutcome.SCHEDULED, created=created)
        else:
            # quantities only, still waiting for the pharmacy
            result = DispatchResult(item=item, outcome=DispatchOutcome.UPDATED)

        AuditService.log(
            event_code="prescription_item.dispatch_updated",
            entity=item,
            actor_user_id=actor_user_id,
            metadata={
                "outcome": result.outcome,
                "changed": sorted(changes),
                "previous": {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in previous.items()},
            },
        )
        self.logger.info(
            "prescription_item.dispatch_updated",
            extra={
                "prescription_item_id": item.pk,
                "outcome": result.outcome,
                "deleted_count": result.deleted_count,
                "created_count": len(result.created),
            },
        )
        return result
