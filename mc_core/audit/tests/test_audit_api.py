# mc_core/audit/tests/test_audit_api.py
import pytest

from mc_core.audit.services import AuditService

pytestmark = pytest.mark.django_db

URL = "/api/v1/audit/events/"


@pytest.fixture
def events(doctor_user):
    AuditService.log(
        event_code="intake.toggled",
        entity_type="MedicationIntake",
        entity_id=1,
        actor_user_id=doctor_user.id,
        metadata={"from": "PENDING", "to": "TAKEN"},
    )
    AuditService.log(
        event_code="intakes.recalculated",
        entity_type="PrescriptionItem",
        entity_id=7,
        actor_user_id=None,
        metadata={"deleted": 3, "created": 3},
    )


def test_admin_lists_newest_first(superuser_client, events):
    resp = superuser_client.get(URL)

    assert resp.status_code == 200
    assert [e["event_code"] for e in resp.data] == ["intakes.recalculated", "intake.toggled"]
    assert resp.data[1]["metadata"] == {"from": "PENDING", "to": "TAKEN"}
    assert "timestamp" in resp.data[0]
    assert resp.data[1]["actor_username"] == "doctor1"
    assert resp.data[0]["actor_username"] is None


def test_filters(superuser_client, events, doctor_user):
    by_entity = superuser_client.get(URL, {"entity_type": "PrescriptionItem", "entity_id": "7"})
    by_actor = superuser_client.get(URL, {"actor_user_id": doctor_user.id})
    limited = superuser_client.get(URL, {"limit": 1})

    assert [e["entity_id"] for e in by_entity.data] == ["7"]
    assert [e["event_code"] for e in by_actor.data] == ["intake.toggled"]
    assert len(limited.data) == 1


def test_bad_filters_are_400(superuser_client, events):
    bad_actor = superuser_client.get(URL, {"actor_user_id": "abc"})
    bad_limit = superuser_client.get(URL, {"limit": "many"})

    assert bad_actor.status_code == 400
    assert "actor_user_id" in bad_actor.json()["error"]["details"]
    assert bad_limit.status_code == 400
    assert "limit" in bad_limit.json()["error"]["details"]


@pytest.mark.parametrize("client_fixture", ["patient_client", "doctor_client", "pharmacy_client"])
def test_non_admins_are_forbidden(request, client_fixture):
    c = request.getfixturevalue(client_fixture)
    assert c.get(URL).status_code == 403
