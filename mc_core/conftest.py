# mc_core/conftest.py
from datetime import date, time
from zoneinfo import ZoneInfo

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from mc_core.common.permissions import ROLE_DOCTOR, ROLE_PATIENT, ROLE_PHARMACY
from mc_core.patients.models import Patient
from mc_core.prescriptions.models import Medication, Prescription, PrescriptionItem

LIMA = ZoneInfo("America/Lima")


def _user_in_group(username: str, group_name: str | None):
    User = get_user_model()
    user = User.objects.create_user(username=username, password="testpass", is_active=True)
    if group_name:
        group, _ = Group.objects.get_or_create(name=group_name)
        user.groups.add(group)
    return user


def _client_for(user) -> APIClient:
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture(autouse=True)
def _lima_time_zone(settings):
    settings.TIME_ZONE = "America/Lima"
    settings.MEDICAPP_FIRST_DOSE_HOUR = 8


@pytest.fixture
def tz():
    return LIMA


# ----------------------------
# Users
# ----------------------------
@pytest.fixture
def patient_user(db):
    return _user_in_group("patient1", ROLE_PATIENT)


@pytest.fixture
def other_patient_user(db):
    return _user_in_group("patient2", ROLE_PATIENT)


@pytest.fixture
def doctor_user(db):
    return _user_in_group("doctor1", ROLE_DOCTOR)


@pytest.fixture
def pharmacy_user(db):
    return _user_in_group("pharmacy1", ROLE_PHARMACY)


@pytest.fixture
def superuser(db):
    User = get_user_model()
    return User.objects.create_superuser(username="root", password="testpass")


# ----------------------------
# Domain records
# ----------------------------
@pytest.fixture
def patient(db, patient_user):
    return Patient.objects.create(
        user=patient_user,
        document_id="12345678",
        full_name="Maria Quispe",
        sex="F",
    )


@pytest.fixture
def other_patient(db, other_patient_user):
    return Patient.objects.create(
        user=other_patient_user,
        document_id="87654321",
        full_name="Jose Huaman",
        sex="M",
    )


@pytest.fixture
def medication(db):
    return Medication.objects.create(
        code="MED-001",
        description="AMOXICILINA 500mg TAB",
        unit="TAB",
        duration_days="5",
    )


@pytest.fixture
def second_medication(db):
    return Medication.objects.create(
        code="MED-002",
        description="PARACETAMOL 500mg TAB",
        unit="TAB",
        duration_days="2",
    )


@pytest.fixture
def prescription(db, patient, doctor_user):
    return Prescription.objects.create(
        number="RX-0001",
        issued_on=date(2024, 1, 9),
        patient=patient,
        prescriber=doctor_user,
        prescriber_name="Dr. Rojas",
    )


@pytest.fixture
def other_prescription(db, other_patient, doctor_user):
    return Prescription.objects.create(
        number="RX-0002",
        issued_on=date(2024, 1, 9),
        patient=other_patient,
        prescriber=doctor_user,
    )


@pytest.fixture
def item(db, prescription, medication):
    """
    Not yet dispatched: no schedule exists for it.
    """
    return PrescriptionItem.objects.create(
        prescription=prescription,
        medication=medication,
        requested_quantity=10,
        dispensed_quantity=10,
    )


@pytest.fixture
def dispatched_item(db, prescription, medication):
    return PrescriptionItem.objects.create(
        prescription=prescription,
        medication=medication,
        requested_quantity=10,
        dispensed_quantity=10,
        dispatch_date=date(2024, 1, 10),
        dispatch_time=time(14, 30),
    )


@pytest.fixture
def scheduled_item(db, dispatched_item):
    """
    Dispatched item with its ten intakes (2/day over 5 days from 2024-01-11).
    """
    from mc_core.intakes.dispense import DispenseEvent
    from mc_core.intakes.services import IntakeSchedulingService

    IntakeSchedulingService().schedule_event(DispenseEvent.from_item(dispatched_item))
    return dispatched_item


# ----------------------------
# API clients
# ----------------------------
@pytest.fixture
def patient_client(patient_user, patient):
    return _client_for(patient_user)


@pytest.fixture
def other_patient_client(other_patient_user, other_patient):
    return _client_for(other_patient_user)


@pytest.fixture
def doctor_client(doctor_user):
    return _client_for(doctor_user)


@pytest.fixture
def pharmacy_client(pharmacy_user):
    return _client_for(pharmacy_user)


@pytest.fixture
def superuser_client(superuser):
    return _client_for(superuser)
