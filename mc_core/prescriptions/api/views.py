# mc_core/prescriptions/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from mc_core.common.actor import resolve_actor
from mc_core.common.api.pagination import paginate
from mc_core.common.errors import ForbiddenError, NotFoundError
from mc_core.common.permissions import (
    ROLE_ADMIN,
    ROLE_PHARMACY,
    PrescriptionItemPermission,
    PrescriptionPermission,
    has_any_role,
)
from mc_core.intakes.api.serializers import MedicationIntakeSerializer
from mc_core.intakes.filters import MedicationIntakeFilter
from mc_core.intakes.selectors import list_intakes_for_item
from mc_core.intakes.services import IntakeSchedulingService
from mc_core.prescriptions.api.serializers import (
    AdminPrescriptionSerializer,
    DispatchResultSerializer,
    DispatchUpdateSerializer,
    PrescriptionItemSerializer,
    PrescriptionSerializer,
    RecalculationResultSerializer,
)
from mc_core.prescriptions.models import Prescription, PrescriptionItem
from mc_core.prescriptions.selectors import get_item, list_all_prescriptions, list_prescriptions_for_patient
from mc_core.prescriptions.services import PrescriptionItemService

FORBIDDEN_ITEM_MSG = "You do not have permission to modify this prescription item."


class PrescriptionViewSet(viewsets.GenericViewSet):
    permission_classes = [PrescriptionPermission]

    serializer_class = PrescriptionSerializer
    queryset = Prescription.objects.none()

    @extend_schema(
        tags=["Prescriptions"],
        parameters=[
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                enum=["active", "completed", "all"],
                description="Defaults to all.",
            )
        ],
        responses={200: PrescriptionSerializer(many=True)},
    )
    def list(self, request):
        actor = resolve_actor(request.user)
        if actor.patient_id is None:
            raise NotFoundError("No patient record is linked to this user.", kind="PatientProfileMissing")

        qs = list_prescriptions_for_patient(
            patient_id=actor.patient_id,
            status=request.query_params.get("status") or "all",
        )
        return paginate(request, qs, PrescriptionSerializer)

    @extend_schema(
        tags=["Prescriptions"],
        parameters=[
            OpenApiParameter(
                name="search",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Part of the prescription number, patient name or DNI.",
            )
        ],
        responses={200: AdminPrescriptionSerializer(many=True)},
    )
    @action(detail=False, methods=["get"], url_path="all")
    def list_all(self, request):
        qs = list_all_prescriptions(search=request.query_params.get("search", ""))
        return paginate(request, qs, AdminPrescriptionSerializer)


class PrescriptionItemViewSet(viewsets.GenericViewSet):
    """
    Professional write path for dispatch data and the derived intake schedule.
    """
    permission_classes = [PrescriptionItemPermission]

    serializer_class = PrescriptionItemSerializer
    queryset = PrescriptionItem.objects.none()
    lookup_value_regex = r"[0-9]+"

    def _get_editable_item(self, request, pk) -> PrescriptionItem:
        item = get_item(item_id=int(pk))

        # Pharmacy staff dispatch any item; a doctor only their own prescriptions.
        if has_any_role(request.user, ROLE_ADMIN, ROLE_PHARMACY):
            return item
        prescriber_id = item.prescription.prescriber_id
        if prescriber_id is not None and prescriber_id != request.user.id:
            raise ForbiddenError(FORBIDDEN_ITEM_MSG)
        return item

    @extend_schema(
        tags=["Prescriptions"],
        request=DispatchUpdateSerializer,
        responses={200: DispatchResultSerializer},
    )
    @action(detail=True, methods=["patch"], url_path="dispatch")
    def update_dispatch(self, request, pk=None):
        item = self._get_editable_item(request, pk)

        ser = DispatchUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        result = PrescriptionItemService().update_dispatch(
            item_id=item.pk,
            data=ser.validated_data,
            actor_user_id=request.user.id,
        )
        return Response(DispatchResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Prescriptions"], request=None, responses={200: RecalculationResultSerializer})
    @action(detail=True, methods=["post"])
    def recalculate(self, request, pk=None):
        item = self._get_editable_item(request, pk)
        result = IntakeSchedulingService().recalculate_intakes_for_item(item.pk, actor_user_id=request.user.id)
        return Response(RecalculationResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Prescriptions"],
        parameters=[
            OpenApiParameter(name="taken", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="scheduled_after", type=OpenApiTypes.DATETIME, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="scheduled_before", type=OpenApiTypes.DATETIME, location=OpenApiParameter.QUERY),
        ],
        responses={200: MedicationIntakeSerializer(many=True)},
    )
    @action(detail=True, methods=["get"])
    def intakes(self, request, pk=None):
        item = get_item(item_id=int(pk))
        filterset = MedicationIntakeFilter(request.query_params, queryset=list_intakes_for_item(item_id=item.pk))
        if not filterset.is_valid():
            raise DRFValidationError(filterset.errors)
        return paginate(request, filterset.qs, MedicationIntakeSerializer)
