# mc_core/dashboard/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from mc_core.common.permissions import BaseRolePermission
from mc_core.dashboard.api.serializers import SystemStatsSerializer
from mc_core.dashboard.selectors import get_system_stats


class DashboardPermission(BaseRolePermission):
    # admins only
    allowed_roles_per_action = {}


class DashboardViewSet(viewsets.GenericViewSet):
    permission_classes = [DashboardPermission]
    serializer_class = SystemStatsSerializer

    @extend_schema(tags=["Dashboard"], responses={200: SystemStatsSerializer})
    @action(detail=False, methods=["get"], url_path="system-stats")
    def system_stats(self, request):
        return Response(SystemStatsSerializer(get_system_stats()).data, status=status.HTTP_200_OK)
