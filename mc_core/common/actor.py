# mc_core/common/actor.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """
    Identity of whoever is calling a core operation.

    Resolved once at the HTTP boundary from the authenticated user; the core
    never looks at credentials. `patient_id` is None for users that have no
    patient profile (professionals, admins).
    """
    user_id: int | None
    patient_id: int | None = None


def resolve_actor(user) -> Actor:
    if not user or not getattr(user, "is_authenticated", False):
        return Actor(user_id=None, patient_id=None)

    # Imported lazily so this module stays importable before apps are ready.
    from mc_core.patients.selectors import find_patient_for_user

    patient = find_patient_for_user(user=user)
    return Actor(user_id=user.id, patient_id=patient.id if patient else None)
