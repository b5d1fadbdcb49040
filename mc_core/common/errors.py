# mc_core/common/errors.py
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base for errors raised by services/selectors.

    `kind` is a stable machine-readable variant (e.g. "IntakeNotFound");
    the HTTP layer maps the class to a status code, never the kind.
    """
    default_message = "Request failed."
    default_kind = "error"

    def __init__(self, message: str | None = None, *, kind: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.kind = kind or self.default_kind
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ValidationError(DomainError):
    default_message = "Invalid input."
    default_kind = "InvalidInput"


class NotFoundError(DomainError):
    default_message = "Not found."
    default_kind = "NotFound"


class ForbiddenError(DomainError):
    default_message = "You do not have permission to perform this action."
    default_kind = "Forbidden"


class PersistenceError(DomainError):
    default_message = "Storage operation failed."
    default_kind = "Persistence"
