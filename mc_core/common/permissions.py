# mc_core/common/permissions.py

from __future__ import annotations

from typing import Set

from rest_framework.permissions import BasePermission

# Django auth Group names
ROLE_ADMIN = "ADMIN"
ROLE_DOCTOR = "DOCTOR"
ROLE_PHARMACY = "PHARMACY"
ROLE_PATIENT = "PATIENT"


def user_roles(user) -> Set[str]:
    """
    Roles come from Django groups. Superusers are ADMIN and nothing else;
    anonymous users have no roles.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return set()
    if getattr(user, "is_superuser", False):
        return {ROLE_ADMIN}

    return set(user.groups.values_list("name", flat=True))


def has_any_role(user, *roles: str) -> bool:
    return bool(user_roles(user) & set(roles))


class BaseRolePermission(BasePermission):
    """
    Role-based access control keyed by ViewSet action.

    - Requires authentication.
    - ADMIN bypass.
    - Unknown actions are denied.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action: dict[str, Set[str]] = {}

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = user_roles(user)
        if ROLE_ADMIN in roles:
            return True

        action = getattr(view, "action", None)
        allowed = self.allowed_roles_per_action.get(action)
        if allowed is None:
            return False

        return bool(roles & allowed)


class IntakePermission(BaseRolePermission):
    """
    Patients read and mutate their own intakes (ownership is enforced by the
    intake services, not here). Doctors may read any patient's history.
    """
    allowed_roles_per_action = {
        "pending": {ROLE_PATIENT},
        "history": {ROLE_PATIENT},
        "daily": {ROLE_PATIENT},
        "daily_progress": {ROLE_PATIENT},
        "daily_grouped": {ROLE_PATIENT},
        "toggle": {ROLE_PATIENT},
        "taken": {ROLE_PATIENT},
        "patient_history": {ROLE_DOCTOR},
    }


class PatientPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "search": {ROLE_DOCTOR, ROLE_PHARMACY},
    }


class PrescriptionPermission(BaseRolePermission):
    # list_all (every patient's prescriptions) is left to the ADMIN bypass
    allowed_roles_per_action = {
        "list": {ROLE_PATIENT},
    }


class PrescriptionItemPermission(BaseRolePermission):
    """
    Dispatch data is written by doctors and pharmacy staff; reading an item's
    intake schedule is open to the same roles.
    """
    allowed_roles_per_action = {
        "update_dispatch": {ROLE_DOCTOR, ROLE_PHARMACY},
        "recalculate": {ROLE_DOCTOR, ROLE_PHARMACY},
        "intakes": {ROLE_DOCTOR, ROLE_PHARMACY},
    }
