# mc_core/intakes/tests/test_intake_api.py
import pytest

from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.services import FORBIDDEN_INTAKE_MSG

pytestmark = pytest.mark.django_db


@pytest.fixture
def intake(scheduled_item):
    return MedicationIntake.objects.filter(prescription_item=scheduled_item).order_by("scheduled_time").first()


def test_toggle_own_intake(patient_client, intake):
    resp = patient_client.post(f"/api/v1/intakes/{intake.pk}/toggle/")

    assert resp.status_code == 200, resp.data
    assert resp.data["taken"] is True
    assert resp.data["status"] == "TAKEN"
    assert resp.data["taken_time"] is not None
    assert resp.data["medication_id"] == intake.prescription_item.medication_id


def test_toggle_other_patients_intake_returns_403_envelope(other_patient_client, intake):
    resp = other_patient_client.post(f"/api/v1/intakes/{intake.pk}/toggle/")

    assert resp.status_code == 403
    body = resp.json()
    assert body["error"]["code"] == "permission_denied"
    assert body["error"]["message"] == FORBIDDEN_INTAKE_MSG
    intake.refresh_from_db()
    assert intake.taken is False


def test_toggle_missing_intake_returns_404(patient_client, db):
    resp = patient_client.post("/api/v1/intakes/999999/toggle/")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not_found"


def test_mark_taken_is_idempotent(patient_client, intake):
    first = patient_client.put(f"/api/v1/intakes/{intake.pk}/taken/")
    second = patient_client.put(f"/api/v1/intakes/{intake.pk}/taken/")

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.data["taken_time"] == second.data["taken_time"]


def test_doctor_cannot_toggle(doctor_client, intake):
    resp = doctor_client.post(f"/api/v1/intakes/{intake.pk}/toggle/")
    assert resp.status_code == 403


def test_unauthenticated_is_rejected(client, intake):
    resp = client.post(f"/api/v1/intakes/{intake.pk}/toggle/")
    assert resp.status_code == 401


def test_daily_progress_endpoint(patient_client, scheduled_item):
    resp = patient_client.get("/api/v1/intakes/daily-progress/", {"date": "2024-01-11"})

    assert resp.status_code == 200
    assert resp.data["total"] == 2
    assert resp.data["taken"] == 0
    assert resp.data["percentage"] == 0
    assert len(resp.data["intakes"]) == 2


def test_daily_progress_rejects_bad_date(patient_client, scheduled_item):
    resp = patient_client.get("/api/v1/intakes/daily-progress/", {"date": "11/01/2024"})

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"


def test_daily_and_grouped_endpoints(patient_client, scheduled_item):
    daily = patient_client.get("/api/v1/intakes/daily/", {"date": "2024-01-12"})
    grouped = patient_client.get("/api/v1/intakes/daily-grouped/", {"date": "2024-01-12"})

    assert daily.status_code == 200
    assert len(daily.data) == 2
    assert grouped.status_code == 200
    assert grouped.data[0]["times"] == ["08:00", "20:00"]
    assert grouped.data[0]["date_taken"] == []


def test_history_endpoint(patient_client, scheduled_item):
    resp = patient_client.get("/api/v1/intakes/history/")

    assert resp.status_code == 200
    assert resp.data["stats"]["total"] == 10
    assert resp.data["stats"]["compliance_rate"] == 0.0
    assert set(resp.data["monthly_breakdown"]) == {"2024-01"}


def test_pending_endpoint_shape(patient_client, scheduled_item):
    resp = patient_client.get("/api/v1/intakes/pending/")

    assert resp.status_code == 200
    assert set(resp.data) == {"past", "today", "upcoming"}


def test_patient_endpoints_need_a_patient_profile(patient_user, scheduled_item):
    from rest_framework.test import APIClient

    from mc_core.patients.models import Patient

    Patient.objects.filter(user=patient_user).update(user=None)
    c = APIClient()
    c.force_authenticate(user=patient_user)

    resp = c.get("/api/v1/intakes/history/")
    assert resp.status_code == 404
    assert resp.json()["error"]["details"]["kind"] == "PatientProfileMissing"


def test_doctor_reads_patient_history_by_id_or_document(doctor_client, patient, scheduled_item):
    by_id = doctor_client.get(f"/api/v1/intakes/patient/{patient.pk}/")
    by_dni = doctor_client.get(f"/api/v1/intakes/patient/{patient.document_id}/")

    assert by_id.status_code == 200
    assert by_dni.status_code == 200
    assert by_id.data["patient"]["document_id"] == patient.document_id
    assert by_dni.data["stats"]["total"] == 10
    assert by_dni.data["medication_groups"][0]["total"] == 10


def test_patient_cannot_read_professional_history(patient_client, patient, scheduled_item):
    resp = patient_client.get(f"/api/v1/intakes/patient/{patient.pk}/")
    assert resp.status_code == 403


def test_unknown_patient_reference_is_404(doctor_client, db):
    resp = doctor_client.get("/api/v1/intakes/patient/99999999/")
    assert resp.status_code == 404
