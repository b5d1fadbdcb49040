# mc_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from mc_core.audit.api.serializers import AuditEventSerializer
from mc_core.audit.filters import AuditEventFilter
from mc_core.audit.models import AuditEvent
from mc_core.audit.selectors import list_audit_events
from mc_core.common.permissions import BaseRolePermission

DEFAULT_LIMIT = 200
MAX_LIMIT = 500


class AuditPermission(BaseRolePermission):
    # no action is open to a role; only the ADMIN bypass gets through
    allowed_roles_per_action = {}


def _limit_param(request) -> int:
    raw = request.query_params.get("limit")
    try:
        value = int(raw) if raw else DEFAULT_LIMIT
    except ValueError:
        raise DRFValidationError({"limit": "Expected an integer."})
    return max(1, min(value, MAX_LIMIT))


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    Admin view over the audit trail: who toggled which intake, which
    dispatch edits triggered a recalculation.
    """
    permission_classes = [AuditPermission]

    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        parameters=[
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="event_code", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="actor_user_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="occurred_after", type=OpenApiTypes.DATETIME, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="occurred_before", type=OpenApiTypes.DATETIME, location=OpenApiParameter.QUERY),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description=f"Max records to return (default {DEFAULT_LIMIT}, max {MAX_LIMIT}).",
            ),
        ],
        responses={200: AuditEventSerializer(many=True)},
    )
    def list(self, request):
        filterset = AuditEventFilter(request.query_params, queryset=list_audit_events())
        if not filterset.is_valid():
            raise DRFValidationError(filterset.errors)

        events = filterset.qs[: _limit_param(request)]
        return Response(AuditEventSerializer(events, many=True).data, status=status.HTTP_200_OK)
