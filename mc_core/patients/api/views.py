# mc_core/patients/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action

from mc_core.common.api.pagination import paginate
from mc_core.common.permissions import PatientPermission
from mc_core.patients.api.serializers import PatientSerializer
from mc_core.patients.models import Patient
from mc_core.patients.selectors import search_patients


class PatientViewSet(viewsets.GenericViewSet):
    permission_classes = [PatientPermission]

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    @extend_schema(
        tags=["Patients"],
        parameters=[
            OpenApiParameter(
                name="search",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="Part of the patient's name or DNI. Blank lists everyone.",
            )
        ],
        responses={200: PatientSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        qs = search_patients(query=request.query_params.get("search", ""))
        return paginate(request, qs, PatientSerializer)
