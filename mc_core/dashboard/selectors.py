# mc_core/dashboard/selectors.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.db.models.functions import TruncMonth
from django.utils import timezone

from mc_core.common.permissions import ROLE_DOCTOR, ROLE_PHARMACY
from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.selectors import percent, rate
from mc_core.patients.models import Patient
from mc_core.prescriptions.models import Medication, Prescription, PrescriptionItem

MONTHS_SHOWN = 6


@dataclass
class MonthlyCount:
    month: str
    count: int


@dataclass
class SystemStats:
    total_users: int
    total_patients: int
    total_professionals: int
    total_medications: int
    total_prescriptions: int
    total_items: int
    completed_items: int
    item_completion_percentage: int
    total_intakes: int
    taken_intakes: int
    intake_compliance_rate: float
    monthly_prescriptions: list[MonthlyCount] = field(default_factory=list)


def month_start(day: date, months_back: int = 0) -> date:
    index = day.year * 12 + (day.month - 1) - months_back
    return date(index // 12, index % 12 + 1, 1)


def _completed_item_count() -> int:
    return (
        PrescriptionItem.objects.annotate(
            intake_total=Count("intakes"),
            intake_pending=Count("intakes", filter=Q(intakes__taken=False)),
        )
        .filter(intake_total__gt=0, intake_pending=0)
        .count()
    )


def monthly_prescription_counts(*, today: date | None = None, months: int = MONTHS_SHOWN) -> list[MonthlyCount]:
    """
    Prescriptions issued per month over the last `months` months, current
    month included. Months without prescriptions are left out.
    """
    today = today or timezone.localdate()
    rows = (
        Prescription.objects.filter(issued_on__gte=month_start(today, months - 1), issued_on__lte=today)
        .annotate(month=TruncMonth("issued_on"))
        .values("month")
        .annotate(count=Count("id"))
        .order_by("month")
    )
    return [MonthlyCount(month=row["month"].strftime("%Y-%m"), count=row["count"]) for row in rows]


def get_system_stats(*, today: date | None = None) -> SystemStats:
    User = get_user_model()

    total_items = PrescriptionItem.objects.count()
    completed_items = _completed_item_count()
    total_intakes = MedicationIntake.objects.count()
    taken_intakes = MedicationIntake.objects.filter(taken=True).count()

    return SystemStats(
        total_users=User.objects.count(),
        total_patients=Patient.objects.count(),
        total_professionals=User.objects.filter(groups__name__in=[ROLE_DOCTOR, ROLE_PHARMACY]).distinct().count(),
        total_medications=Medication.objects.count(),
        total_prescriptions=Prescription.objects.count(),
        total_items=total_items,
        completed_items=completed_items,
        item_completion_percentage=percent(completed_items, total_items),
        total_intakes=total_intakes,
        taken_intakes=taken_intakes,
        intake_compliance_rate=rate(taken_intakes, total_intakes),
        monthly_prescriptions=monthly_prescription_counts(today=today),
    )
