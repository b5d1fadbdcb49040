# mc_core/intakes/api/views.py
from __future__ import annotations

from datetime import date

from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from mc_core.common.actor import Actor, resolve_actor
from mc_core.common.errors import NotFoundError
from mc_core.common.permissions import IntakePermission
from mc_core.intakes import selectors
from mc_core.intakes.api.serializers import (
    DailyProgressSerializer,
    IntakeHistorySerializer,
    MedicationDaySerializer,
    MedicationIntakeSerializer,
    PatientIntakeHistorySerializer,
    PendingIntakesSerializer,
)
from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.services import IntakeStateService
from mc_core.patients.selectors import get_patient_by_reference

DATE_PARAM = OpenApiParameter(
    name="date",
    type=OpenApiTypes.DATE,
    location=OpenApiParameter.QUERY,
    description="Local calendar day (YYYY-MM-DD). Defaults to today.",
)


def _day_param(request) -> date:
    raw = request.query_params.get("date")
    if not raw:
        return timezone.localdate()
    day = parse_date(raw)
    if day is None:
        raise DRFValidationError({"date": "Invalid date. Use YYYY-MM-DD."})
    return day


def _require_patient(actor: Actor) -> int:
    if actor.patient_id is None:
        raise NotFoundError("No patient record is linked to this user.", kind="PatientProfileMissing")
    return actor.patient_id


class IntakeViewSet(viewsets.GenericViewSet):
    """
    Patient-facing intake endpoints plus the professional history view.

    - reads go through intakes.selectors
    - state changes go through IntakeStateService
    - ownership is checked by the service, roles by IntakePermission
    """
    permission_classes = [IntakePermission]

    serializer_class = MedicationIntakeSerializer
    queryset = MedicationIntake.objects.none()
    lookup_value_regex = r"[0-9]+"

    state_service_class = IntakeStateService

    def _actor(self, request) -> Actor:
        return resolve_actor(request.user)

    # ----------------------------
    # Patient reads
    # ----------------------------
    @extend_schema(tags=["Intakes"], responses={200: PendingIntakesSerializer})
    @action(detail=False, methods=["get"])
    def pending(self, request):
        patient_id = _require_patient(self._actor(request))
        result = selectors.get_pending_intakes(patient_id=patient_id)
        return Response(PendingIntakesSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Intakes"], responses={200: IntakeHistorySerializer})
    @action(detail=False, methods=["get"])
    def history(self, request):
        patient_id = _require_patient(self._actor(request))
        result = selectors.get_intake_history(patient_id=patient_id)
        return Response(IntakeHistorySerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Intakes"], parameters=[DATE_PARAM], responses={200: MedicationIntakeSerializer(many=True)})
    @action(detail=False, methods=["get"])
    def daily(self, request):
        patient_id = _require_patient(self._actor(request))
        intakes = selectors.get_daily_intakes(patient_id=patient_id, day=_day_param(request))
        return Response(MedicationIntakeSerializer(intakes, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Intakes"], parameters=[DATE_PARAM], responses={200: DailyProgressSerializer})
    @action(detail=False, methods=["get"], url_path="daily-progress")
    def daily_progress(self, request):
        patient_id = _require_patient(self._actor(request))
        result = selectors.get_daily_progress(patient_id=patient_id, day=_day_param(request))
        return Response(DailyProgressSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Intakes"], parameters=[DATE_PARAM], responses={200: MedicationDaySerializer(many=True)})
    @action(detail=False, methods=["get"], url_path="daily-grouped")
    def daily_grouped(self, request):
        patient_id = _require_patient(self._actor(request))
        result = selectors.get_daily_medications_grouped(patient_id=patient_id, day=_day_param(request))
        return Response(MedicationDaySerializer(result, many=True).data, status=status.HTTP_200_OK)

    # ----------------------------
    # Patient writes
    # ----------------------------
    @extend_schema(tags=["Intakes"], request=None, responses={200: MedicationIntakeSerializer})
    @action(detail=True, methods=["post"])
    def toggle(self, request, pk=None):
        intake = self.state_service_class().toggle(int(pk), self._actor(request))
        return Response(MedicationIntakeSerializer(intake).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Intakes"], request=None, responses={200: MedicationIntakeSerializer})
    @action(detail=True, methods=["put"])
    def taken(self, request, pk=None):
        intake = self.state_service_class().mark_taken(int(pk), self._actor(request))
        return Response(MedicationIntakeSerializer(intake).data, status=status.HTTP_200_OK)

    # ----------------------------
    # Professional reads
    # ----------------------------
    @extend_schema(
        tags=["Intakes"],
        parameters=[
            OpenApiParameter(
                name="patient_ref",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.PATH,
                description="Patient id or document id (DNI).",
            )
        ],
        responses={200: PatientIntakeHistorySerializer},
    )
    @action(detail=False, methods=["get"], url_path=r"patient/(?P<patient_ref>[^/.]+)")
    def patient_history(self, request, patient_ref=None):
        patient = get_patient_by_reference(reference=patient_ref)
        result = selectors.get_patient_intake_history(patient=patient)
        return Response(PatientIntakeHistorySerializer(result).data, status=status.HTTP_200_OK)
