# mc_core/common/tests/test_error_envelope.py
import pytest
from rest_framework.exceptions import NotAuthenticated
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.test import APIRequestFactory

from mc_core.common import errors
from mc_core.common.api.exceptions import api_exception_handler


@pytest.fixture
def context():
    return {"request": APIRequestFactory().get("/")}


@pytest.mark.parametrize(
    "exc, status_code, code",
    [
        (errors.ValidationError("bad", kind="InvalidInput"), 400, "validation_error"),
        (errors.NotFoundError("missing", kind="IntakeNotFound"), 404, "not_found"),
        (errors.ForbiddenError("nope"), 403, "permission_denied"),
    ],
)
def test_domain_errors_map_to_status_and_code(context, exc, status_code, code):
    resp = api_exception_handler(exc, context)

    assert resp.status_code == status_code
    assert resp.data["error"]["code"] == code
    assert resp.data["error"]["message"] == exc.message
    assert resp.data["error"]["details"]["kind"] == exc.kind
    assert resp.data["error"]["request_id"]


def test_domain_error_details_are_nested_under_info(context):
    exc = errors.ValidationError("bad row", kind="InvalidImportRow", details={"row": 3})
    resp = api_exception_handler(exc, context)

    assert resp.data["error"]["details"] == {"kind": "InvalidImportRow", "info": {"row": 3}}


def test_persistence_error_hides_internals(context):
    exc = errors.PersistenceError("deadlock detected on medication_intake", kind="ConcurrentUpdate")
    resp = api_exception_handler(exc, context)

    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "server_error"
    assert resp.data["error"]["message"] == "Unexpected server error."
    assert resp.data["error"]["details"] is None


def test_unhandled_exception_is_generic_500(context):
    resp = api_exception_handler(RuntimeError("boom"), context)

    assert resp.status_code == 500
    assert resp.data["error"]["message"] == "Unexpected server error."


def test_drf_errors_are_wrapped(context):
    resp = api_exception_handler(NotAuthenticated(), context)

    assert resp.status_code == 401
    assert resp.data["error"]["code"] == "not_authenticated"
    assert resp.data["error"]["details"] is None


def test_request_id_is_stable_per_request(context):
    first = api_exception_handler(errors.NotFoundError(), context)
    second = api_exception_handler(errors.NotFoundError(), context)

    assert first.data["error"]["request_id"] == second.data["error"]["request_id"]


def test_caller_request_id_is_echoed():
    request = APIRequestFactory().get("/", HTTP_X_REQUEST_ID="req-42")
    resp = api_exception_handler(errors.NotFoundError(), {"request": request})

    assert resp.data["error"]["request_id"] == "req-42"
    assert resp["X-Request-ID"] == "req-42"


def test_field_errors_stay_as_details(context):
    resp = api_exception_handler(DRFValidationError({"date": ["Invalid date."]}), context)

    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "validation_error"
    assert resp.data["error"]["message"] == "Request failed."
    assert resp.data["error"]["details"] == {"date": ["Invalid date."]}
