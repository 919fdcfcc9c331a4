"""Typed error conditions raised by the Threadline services.

Services raise these; the HTTP layer maps each one to a stable status code.
"""
from __future__ import annotations

from typing import ClassVar

HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


class ServiceError(Exception):
    """Base class for every error a service reports to its caller."""

    status_code: ClassVar[int] = HTTP_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """The entity is absent, soft-deleted, or hidden from the viewer.

    All three causes share one message, so hidden content reads as
    missing.
    """

    status_code: ClassVar[int] = HTTP_NOT_FOUND


class ValidationError(ServiceError):
    """Input was rejected before any query ran."""

    status_code: ClassVar[int] = HTTP_BAD_REQUEST


class ConflictError(ServiceError):
    """The requested relationship row already exists (or does not)."""

    status_code: ClassVar[int] = HTTP_CONFLICT


class ForbiddenError(ServiceError):
    """The caller may see the resource but not act on it."""

    status_code: ClassVar[int] = HTTP_FORBIDDEN
