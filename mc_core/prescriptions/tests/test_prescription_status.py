# mc_core/prescriptions/tests/test_prescription_status.py
from datetime import date

import pytest
from django.utils import timezone

from mc_core.common.errors import ValidationError
from mc_core.intakes.models import MedicationIntake
from mc_core.prescriptions.models import Prescription, PrescriptionStatus
from mc_core.prescriptions.selectors import list_prescriptions_for_patient, prescription_status
from mc_core.prescriptions.services import PrescriptionItemService

pytestmark = pytest.mark.django_db


def _take_all(item):
    MedicationIntake.objects.filter(prescription_item=item).update(taken=True, taken_time=timezone.now())


def test_item_without_intakes_is_not_completed(item):
    assert item.is_completed is False


def test_item_with_pending_intakes_is_not_completed(scheduled_item):
    assert scheduled_item.is_completed is False


def test_item_with_all_intakes_taken_is_completed(scheduled_item):
    _take_all(scheduled_item)
    assert scheduled_item.is_completed is True


def test_status_filter_splits_active_and_completed(patient, prescription, scheduled_item):
    finished = Prescription.objects.create(number="RX-OLD", issued_on=date(2023, 12, 1), patient=patient)

    old_item, _ = PrescriptionItemService().create_item(
        prescription=finished,
        medication=scheduled_item.medication,
        dispensed_quantity=5,
        dispatch_date=date(2023, 12, 1),
    )
    _take_all(old_item)

    active = list(list_prescriptions_for_patient(patient_id=patient.pk, status="active"))
    completed = list(list_prescriptions_for_patient(patient_id=patient.pk, status="completed"))
    everything = list(list_prescriptions_for_patient(patient_id=patient.pk))

    assert [p.pk for p in active] == [prescription.pk]
    assert [p.pk for p in completed] == [finished.pk]
    # newest issued first
    assert [p.pk for p in everything] == [prescription.pk, finished.pk]
    assert prescription_status(completed[0]) == PrescriptionStatus.COMPLETED
    assert prescription_status(active[0]) == PrescriptionStatus.ACTIVE


def test_prescription_without_intakes_is_active(prescription, item):
    assert prescription_status(prescription) == PrescriptionStatus.ACTIVE
    assert [p.pk for p in list_prescriptions_for_patient(patient_id=prescription.patient_id, status="active")] == [
        prescription.pk
    ]


def test_unknown_status_is_rejected(patient):
    with pytest.raises(ValidationError):
        list_prescriptions_for_patient(patient_id=patient.pk, status="archived")
