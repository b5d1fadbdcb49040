# mc_core/prescriptions/selectors.py
from __future__ import annotations

from django.db.models import Count, Prefetch, Q, QuerySet

from mc_core.common.errors import NotFoundError, ValidationError
from mc_core.prescriptions.models import Prescription, PrescriptionItem, PrescriptionStatus

STATUS_ALL = "all"
VALID_STATUSES = {STATUS_ALL, *PrescriptionStatus.values}


def _items_with_counts() -> QuerySet[PrescriptionItem]:
    return (
        PrescriptionItem.objects.select_related("medication")
        .annotate(
            intake_total=Count("intakes"),
            intake_pending=Count("intakes", filter=Q(intakes__taken=False)),
        )
        .order_by("id")
    )


def _with_intake_counts(qs: QuerySet[Prescription]) -> QuerySet[Prescription]:
    return (
        qs.annotate(
            intake_total=Count("items__intakes"),
            intake_pending=Count("items__intakes", filter=Q(items__intakes__taken=False)),
        )
        .prefetch_related(Prefetch("items", queryset=_items_with_counts()))
        .order_by("-issued_on", "-id")
    )


def list_prescriptions_for_patient(*, patient_id: int, status: str = STATUS_ALL) -> QuerySet[Prescription]:
    """
    A prescription is completed once it has intakes and none of them is
    pending; anything else is active.
    """
    status = (status or STATUS_ALL).lower()
    if status not in VALID_STATUSES:
        raise ValidationError(
            "status must be one of: active, completed, all.",
            kind="InvalidFilter",
            details={"status": status},
        )

    qs = _with_intake_counts(Prescription.objects.filter(patient_id=patient_id))

    completed = Q(intake_total__gt=0, intake_pending=0)
    if status == PrescriptionStatus.COMPLETED:
        qs = qs.filter(completed)
    elif status == PrescriptionStatus.ACTIVE:
        qs = qs.exclude(completed)
    return qs


def list_all_prescriptions(*, search: str = "") -> QuerySet[Prescription]:
    """
    Every prescription, newest first, for administrators. `search` matches
    part of the prescription number, the patient's name or DNI.
    """
    qs = Prescription.objects.select_related("patient")
    term = (search or "").strip()
    if term:
        qs = qs.filter(
            Q(number__icontains=term)
            | Q(patient__full_name__icontains=term)
            | Q(patient__document_id__icontains=term)
        )
    return _with_intake_counts(qs)


def prescription_status(prescription: Prescription) -> str:
    total = getattr(prescription, "intake_total", None)
    pending = getattr(prescription, "intake_pending", None)
    if total is None or pending is None:
        qs = PrescriptionItem.objects.filter(prescription=prescription)
        total = qs.aggregate(n=Count("intakes"))["n"]
        pending = qs.aggregate(n=Count("intakes", filter=Q(intakes__taken=False)))["n"]
    if total and not pending:
        return PrescriptionStatus.COMPLETED
    return PrescriptionStatus.ACTIVE


def get_item(*, item_id: int) -> PrescriptionItem:
    try:
        return PrescriptionItem.objects.select_related("medication", "prescription", "prescription__patient").get(
            pk=item_id
        )
    except PrescriptionItem.DoesNotExist:
        raise NotFoundError(f"Prescription item {item_id} not found.", kind="PrescriptionItemNotFound")
