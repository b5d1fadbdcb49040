# mc_core/patients/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from mc_core.common.errors import NotFoundError
from mc_core.patients.models import Patient


def find_patient_for_user(*, user) -> Patient | None:
    if not user or not getattr(user, "pk", None):
        return None
    return Patient.objects.filter(user_id=user.pk).first()


def get_patient(*, patient_id: int) -> Patient:
    try:
        return Patient.objects.get(id=patient_id)
    except Patient.DoesNotExist:
        raise NotFoundError("Patient not found.", kind="PatientNotFound")


def get_patient_by_reference(*, reference: str) -> Patient:
    """
    Professionals look patients up either by document id (DNI) or by numeric
    id. DNIs are unique, so an exact DNI match wins; an all-digit reference
    with no DNI match is tried as an id.
    """
    ref = (reference or "").strip()
    if not ref:
        raise NotFoundError("Patient not found.", kind="PatientNotFound")

    patient = Patient.objects.filter(document_id=ref).first()
    if patient is not None:
        return patient
    # ids are bigints; longer digit strings cannot be one
    if ref.isdigit() and len(ref) <= 18:
        return get_patient(patient_id=int(ref))
    raise NotFoundError("Patient not found.", kind="PatientNotFound")


def search_patients(*, query: str = "") -> QuerySet[Patient]:
    """
    Partial, case-insensitive match on name or DNI, alphabetical.
    A blank query lists every patient.
    """
    qs = Patient.objects.order_by("full_name", "id")
    term = (query or "").strip()
    if term:
        qs = qs.filter(Q(full_name__icontains=term) | Q(document_id__icontains=term))
    return qs
