# mc_core/intakes/dispense.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo

from django.utils.dateparse import parse_date

from mc_core.common.errors import ValidationError
from mc_core.intakes.schedule import merge_dispatch, parse_duration_days, resolve_dispensed_quantity
from mc_core.prescriptions.models import Medication, PrescriptionItem

INVALID_DISPENSE = "InvalidDispenseData"


def parse_dispatch_date(value) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value
    parsed = parse_date(str(value).strip())
    if parsed is None:
        raise ValidationError("dispatch_date is invalid. Use YYYY-MM-DD.", kind=INVALID_DISPENSE, details={"dispatch_date": value})
    return parsed


def parse_dispatch_time(value) -> time | None:
    """
    Accepts time objects or "HH:MM" / "HH:MM:SS" strings.
    """
    if value in (None, ""):
        return None
    if isinstance(value, time):
        return value

    parts = str(value).strip().split(":")
    try:
        if len(parts) not in (2, 3):
            raise ValueError(value)
        hours, minutes = int(parts[0]), int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
        return time(hours, minutes, seconds)
    except ValueError:
        raise ValidationError("dispatch_time is invalid. Use HH:MM.", kind=INVALID_DISPENSE, details={"dispatch_time": value})


@dataclass(frozen=True)
class DispenseEvent:
    """
    A dispensed prescription item, normalized once at the boundary
    (ORM row, API payload or CSV row) before any scheduling happens.
    """
    item: PrescriptionItem
    medication: Medication
    dispatch_date: date | None
    dispatch_time: time | None = None

    @classmethod
    def build(cls, *, item: PrescriptionItem, medication: Medication, dispatch_date, dispatch_time=None) -> "DispenseEvent":
        return cls(
            item=item,
            medication=medication,
            dispatch_date=parse_dispatch_date(dispatch_date),
            dispatch_time=parse_dispatch_time(dispatch_time),
        )

    @classmethod
    def from_item(cls, item: PrescriptionItem) -> "DispenseEvent":
        return cls.build(
            item=item,
            medication=item.medication,
            dispatch_date=item.dispatch_date,
            dispatch_time=item.dispatch_time,
        )

    @property
    def is_dispatched(self) -> bool:
        return self.dispatch_date is not None

    @property
    def duration_days(self) -> int:
        return parse_duration_days(self.medication.duration_days)

    @property
    def dispensed_quantity(self) -> int:
        return resolve_dispensed_quantity(self.item.dispensed_quantity, self.item.requested_quantity)

    def dispatch_at(self, *, tz: tzinfo | None = None) -> datetime:
        if self.dispatch_date is None:
            raise ValidationError("Item has not been dispatched.", kind=INVALID_DISPENSE)
        return merge_dispatch(self.dispatch_date, self.dispatch_time, tz=tz)
