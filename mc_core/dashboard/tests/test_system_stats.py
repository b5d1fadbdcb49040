# mc_core/dashboard/tests/test_system_stats.py
from datetime import date

import pytest
from django.utils import timezone

from mc_core.dashboard.selectors import MonthlyCount, get_system_stats, month_start
from mc_core.intakes.models import MedicationIntake
from mc_core.prescriptions.models import Prescription

pytestmark = pytest.mark.django_db

URL = "/api/v1/dashboard/system-stats/"


@pytest.mark.parametrize(
    "day, back, expected",
    [
        (date(2024, 3, 15), 0, date(2024, 3, 1)),
        (date(2024, 3, 15), 5, date(2023, 10, 1)),
        (date(2024, 1, 31), 1, date(2023, 12, 1)),
    ],
)
def test_month_start(day, back, expected):
    assert month_start(day, back) == expected


def test_totals_count_professionals_once(superuser, pharmacy_user, scheduled_item):
    stats = get_system_stats(today=date(2024, 3, 15))

    # root, patient1, doctor1, pharmacy1
    assert stats.total_users == 4
    assert stats.total_professionals == 2
    assert stats.total_patients == 1
    assert stats.total_medications == 1
    assert stats.total_prescriptions == 1
    assert stats.total_items == 1
    assert stats.completed_items == 0
    assert stats.item_completion_percentage == 0
    assert stats.total_intakes == 10
    assert stats.taken_intakes == 0


def test_item_completes_once_every_intake_is_taken(scheduled_item):
    MedicationIntake.objects.filter(prescription_item=scheduled_item).update(taken=True, taken_time=timezone.now())

    stats = get_system_stats(today=date(2024, 3, 15))

    assert stats.completed_items == 1
    assert stats.item_completion_percentage == 100
    assert stats.intake_compliance_rate == 100.0


def test_undispatched_item_is_not_completed(item):
    stats = get_system_stats(today=date(2024, 3, 15))

    assert stats.total_items == 1
    assert stats.completed_items == 0


def test_monthly_counts_cover_the_last_six_months(prescription, other_patient, doctor_user):
    Prescription.objects.create(number="RX-OLD", issued_on=date(2023, 9, 30), patient=other_patient, prescriber=doctor_user)
    Prescription.objects.create(number="RX-MAR", issued_on=date(2024, 3, 2), patient=other_patient, prescriber=doctor_user)

    stats = get_system_stats(today=date(2024, 3, 15))

    assert stats.monthly_prescriptions == [MonthlyCount("2024-01", 1), MonthlyCount("2024-03", 1)]


def test_admin_reads_system_stats(superuser_client, prescription, doctor_user, patient):
    Prescription.objects.create(number="RX-NOW", issued_on=timezone.localdate(), patient=patient, prescriber=doctor_user)

    resp = superuser_client.get(URL)

    assert resp.status_code == 200, resp.data
    assert resp.data["total_prescriptions"] == 2
    assert resp.data["total_patients"] == 1
    assert resp.data["intake_compliance_rate"] == 0.0
    assert resp.data["monthly_prescriptions"][-1] == {
        "month": timezone.localdate().strftime("%Y-%m"),
        "count": 1,
    }


@pytest.mark.parametrize("client_fixture", ["doctor_client", "pharmacy_client", "patient_client"])
def test_system_stats_are_admin_only(request, client_fixture):
    client = request.getfixturevalue(client_fixture)

    resp = client.get(URL)

    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "permission_denied"
