# mc_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from mc_core.audit.api.views import AuditEventViewSet
from mc_core.dashboard.api.views import DashboardViewSet
from mc_core.intakes.api.views import IntakeViewSet
from mc_core.patients.api.views import PatientViewSet
from mc_core.prescriptions.api.views import PrescriptionItemViewSet, PrescriptionViewSet

router = DefaultRouter()

router.register(r"intakes", IntakeViewSet, basename="intakes")
router.register(r"prescriptions", PrescriptionViewSet, basename="prescriptions")
router.register(r"prescription-items", PrescriptionItemViewSet, basename="prescription-items")
router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")
router.register(r"dashboard", DashboardViewSet, basename="dashboard")

urlpatterns = [
    # Stock simplejwt pair/refresh
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain-pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
