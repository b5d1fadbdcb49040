# mc_core/intakes/selectors.py
"""
Read-side projections over medication intakes (dashboards, history).

Day boundaries are local calendar days in settings.TIME_ZONE, never UTC.
Nothing here writes.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

from django.conf import settings
from django.utils import timezone

from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.repository import IntakeRepository
from mc_core.patients.models import Patient

_repository = IntakeRepository()


# -------------------------
# Result shapes
# -------------------------
@dataclass
class DailyProgress:
    date: date
    total: int
    taken: int
    pending: int
    percentage: int
    intakes: list[MedicationIntake] = field(default_factory=list)


@dataclass
class MedicationDay:
    medication_id: int
    name: str
    unit: str
    total: int = 0
    taken: int = 0
    times: list[str] = field(default_factory=list)
    date_taken: list[str] = field(default_factory=list)
    intakes: list[MedicationIntake] = field(default_factory=list)


@dataclass
class HistoryStats:
    total: int
    taken: int
    pending: int
    compliance_rate: float


@dataclass
class PeriodCompliance:
    total: int = 0
    taken: int = 0
    compliance: float = 0.0


@dataclass
class MedicationCompliance:
    id: int
    name: str
    total: int = 0
    taken: int = 0
    compliance: float = 0.0


@dataclass
class IntakeHistory:
    intakes: list[MedicationIntake]
    stats: HistoryStats
    monthly_breakdown: dict[str, PeriodCompliance]


@dataclass
class PatientIntakeHistory(IntakeHistory):
    patient: Optional[Patient] = None
    medication_groups: list[MedicationCompliance] = field(default_factory=list)


@dataclass
class PendingIntakes:
    past: list[MedicationIntake] = field(default_factory=list)
    today: list[MedicationIntake] = field(default_factory=list)
    upcoming: list[MedicationIntake] = field(default_factory=list)


# -------------------------
# Helpers
# -------------------------
def _tz(tz: tzinfo | None) -> tzinfo:
    return tz or timezone.get_default_timezone()


def local_day_bounds(day: date, *, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """
    [start, end) of a local calendar day as aware datetimes.
    """
    tz = _tz(tz)
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min), tz)
    return start, end


def percent(part: int, whole: int) -> int:
    # half-up, 0 for an empty window
    if not whole:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


def rate(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def hhmm(ts: datetime, *, tz: tzinfo | None = None) -> str:
    return timezone.localtime(ts, _tz(tz)).strftime("%H:%M")


def _counts(intakes: Iterable[MedicationIntake]) -> tuple[int, int]:
    total = taken = 0
    for intake in intakes:
        total += 1
        if intake.taken:
            taken += 1
    return total, taken


# -------------------------
# Daily views
# -------------------------
def get_daily_intakes(*, patient_id: int, day: date, tz: tzinfo | None = None) -> list[MedicationIntake]:
    start, end = local_day_bounds(day, tz=tz)
    return list(_repository.find_by_patient_and_date_range(patient_id, start, end))


def get_daily_progress(*, patient_id: int, day: date, tz: tzinfo | None = None) -> DailyProgress:
    intakes = get_daily_intakes(patient_id=patient_id, day=day, tz=tz)
    total, taken = _counts(intakes)
    return DailyProgress(
        date=day,
        total=total,
        taken=taken,
        pending=total - taken,
        percentage=percent(taken, total),
        intakes=intakes,
    )


def get_daily_medications_grouped(*, patient_id: int, day: date, tz: tzinfo | None = None) -> list[MedicationDay]:
    """
    One entry per medication for the day, in order of its first dose.
    """
    groups: dict[int, MedicationDay] = {}
    for intake in get_daily_intakes(patient_id=patient_id, day=day, tz=tz):
        medication = intake.prescription_item.medication
        group = groups.get(medication.pk)
        if group is None:
            group = groups[medication.pk] = MedicationDay(
                medication_id=medication.pk,
                name=medication.description,
                unit=medication.unit,
            )

        slot = hhmm(intake.scheduled_time, tz=tz)
        group.total += 1
        group.times.append(slot)
        group.intakes.append(intake)
        if intake.taken:
            group.taken += 1
            group.date_taken.append(slot)

    return list(groups.values())


def get_pending_intakes(
    *,
    patient_id: int,
    now: datetime | None = None,
    past_days: int | None = None,
    future_days: int | None = None,
    tz: tzinfo | None = None,
) -> PendingIntakes:
    """
    Intakes from `past_days` ago to `future_days` ahead, split by local day
    into past / today / upcoming.
    """
    now = now or timezone.now()
    if past_days is None:
        past_days = getattr(settings, "MEDICAPP_PENDING_WINDOW_PAST_DAYS", 1)
    if future_days is None:
        future_days = getattr(settings, "MEDICAPP_PENDING_WINDOW_FUTURE_DAYS", 3)

    window = _repository.find_by_patient(patient_id).filter(
        scheduled_time__gte=now - timedelta(days=past_days),
        scheduled_time__lte=now + timedelta(days=future_days),
    ).order_by("scheduled_time", "id")

    today_start, today_end = local_day_bounds(timezone.localtime(now, _tz(tz)).date(), tz=tz)

    out = PendingIntakes()
    for intake in window:
        if intake.scheduled_time < today_start:
            out.past.append(intake)
        elif intake.scheduled_time < today_end:
            out.today.append(intake)
        else:
            out.upcoming.append(intake)
    return out


# -------------------------
# History
# -------------------------
def _monthly_breakdown(intakes: Iterable[MedicationIntake], *, tz: tzinfo | None = None) -> dict[str, PeriodCompliance]:
    months: dict[str, PeriodCompliance] = {}
    for intake in intakes:
        key = timezone.localtime(intake.scheduled_time, _tz(tz)).strftime("%Y-%m")
        bucket = months.setdefault(key, PeriodCompliance())
        bucket.total += 1
        if intake.taken:
            bucket.taken += 1
    for bucket in months.values():
        bucket.compliance = rate(bucket.taken, bucket.total)
    return months


def _history_stats(intakes: list[MedicationIntake]) -> HistoryStats:
    total, taken = _counts(intakes)
    return HistoryStats(total=total, taken=taken, pending=total - taken, compliance_rate=rate(taken, total))


def get_intake_history(*, patient_id: int, tz: tzinfo | None = None) -> IntakeHistory:
    intakes = list(_repository.find_by_patient(patient_id).order_by("-scheduled_time", "-id"))
    return IntakeHistory(
        intakes=intakes,
        stats=_history_stats(intakes),
        monthly_breakdown=_monthly_breakdown(intakes, tz=tz),
    )


def get_patient_intake_history(*, patient: Patient, tz: tzinfo | None = None) -> PatientIntakeHistory:
    """
    Professional-facing history: same rollup plus per-medication compliance.
    """
    base = get_intake_history(patient_id=patient.pk, tz=tz)

    groups: dict[int, MedicationCompliance] = {}
    for intake in base.intakes:
        medication = intake.prescription_item.medication
        group = groups.setdefault(
            medication.pk,
            MedicationCompliance(id=medication.pk, name=medication.description),
        )
        group.total += 1
        if intake.taken:
            group.taken += 1
    for group in groups.values():
        group.compliance = rate(group.taken, group.total)

    return PatientIntakeHistory(
        intakes=base.intakes,
        stats=base.stats,
        monthly_breakdown=base.monthly_breakdown,
        patient=patient,
        medication_groups=list(groups.values()),
    )


def list_intakes_for_item(*, item_id: int):
    return _repository.find_by_prescription_item(item_id)
