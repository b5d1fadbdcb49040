# mc_core/intakes/tests/test_repository.py
from datetime import datetime

import pytest
from django.db import DatabaseError

from mc_core.common.errors import PersistenceError
from mc_core.intakes.models import MedicationIntake
from mc_core.intakes.repository import IntakeRepository

pytestmark = pytest.mark.django_db


def _record(item, tz):
    return MedicationIntake(prescription_item=item, scheduled_time=datetime(2024, 1, 11, 8, 0, tzinfo=tz))


def test_create_inserts_one_pending_intake(dispatched_item, tz):
    saved = IntakeRepository().create(_record(dispatched_item, tz))

    assert saved.pk is not None
    row = MedicationIntake.objects.get(pk=saved.pk)
    assert row.taken is False
    assert row.taken_time is None
    assert row.scheduled_time == datetime(2024, 1, 11, 8, 0, tzinfo=tz)


def test_create_wraps_database_errors(dispatched_item, tz, monkeypatch):
    def broken_save(self, *args, **kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(MedicationIntake, "save", broken_save)

    with pytest.raises(PersistenceError) as excinfo:
        IntakeRepository().create(_record(dispatched_item, tz))

    assert excinfo.value.details == {"operation": "create"}
    assert isinstance(excinfo.value.__cause__, DatabaseError)
    assert MedicationIntake.objects.count() == 0
