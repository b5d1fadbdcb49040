# mc_core/common/api/exceptions.py
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from mc_core.common import errors

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SERVER_ERROR_MSG = "Unexpected server error."


def ensure_request_id(request) -> str:
    """
    Request id for the error envelope: the caller's X-Request-ID when sent,
    otherwise a fresh one. Cached on the request so repeated calls agree.
    """
    if request is None:
        return uuid.uuid4().hex

    rid = getattr(request, "request_id", None)
    if rid:
        return rid

    meta = getattr(request, "META", {}) or {}
    rid = (meta.get("HTTP_X_REQUEST_ID") or "").strip()[:64] or uuid.uuid4().hex
    setattr(request, "request_id", rid)
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


def _envelope_response(request, *, http_status: int, code: str, message: str, details: Any = None, headers=None):
    body = build_error_envelope(request=request, code=code, message=message, details=details)
    response = Response(body, status=http_status, headers=headers)
    response[REQUEST_ID_HEADER] = body["error"]["request_id"]
    return response


# Domain error class -> (http status, envelope code). First match wins.
DOMAIN_ERROR_MAP: list[tuple[type[errors.DomainError], int, str]] = [
    (errors.ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (errors.NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (errors.ForbiddenError, status.HTTP_403_FORBIDDEN, "permission_denied"),
    (errors.PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error"),
]

# DRF / Django exception class -> envelope code.
DRF_CODE_MAP: list[tuple[type[Exception], str]] = [
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (PermissionDenied, "permission_denied"),
    (Http404, "not_found"),
]


def _domain_error_response(exc: errors.DomainError, request) -> Response:
    http_status, code = status.HTTP_400_BAD_REQUEST, "error"
    for cls, mapped_status, mapped_code in DOMAIN_ERROR_MAP:
        if isinstance(exc, cls):
            http_status, code = mapped_status, mapped_code
            break

    if http_status >= 500:
        logger.error("api.domain_error", extra={"kind": exc.kind, "error_message": exc.message})
        # storage failures expose no internals and no retry hint
        return _envelope_response(request, http_status=http_status, code=code, message=SERVER_ERROR_MSG)

    details = {"kind": exc.kind}
    if exc.details:
        details["info"] = exc.details
    return _envelope_response(request, http_status=http_status, code=code, message=exc.message, details=details)


def _drf_code(exc: Exception) -> str:
    for cls, code in DRF_CODE_MAP:
        if isinstance(exc, cls):
            return code
    if isinstance(exc, APIException):
        return getattr(exc, "default_code", None) or "api_error"
    return "error"


def _split_detail(data: Any) -> tuple[str, Any]:
    """
    {"detail": "..."} becomes the message; any other keys stay as details.
    Field errors ({"date": [...]}) are kept whole as details.
    """
    if isinstance(data, dict) and "detail" in data:
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), rest or None
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    if isinstance(exc, errors.DomainError):
        return _domain_error_response(exc, request)

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception("api.unhandled_error")
        return _envelope_response(
            request,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="server_error",
            message=SERVER_ERROR_MSG,
        )

    message, details = _split_detail(response.data)
    return _envelope_response(
        request,
        http_status=response.status_code,
        code=_drf_code(exc),
        message=message,
        details=details,
        headers=response.headers,
    )
