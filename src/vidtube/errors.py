"""
Application error taxonomy.

Every expected failure is an `AppError` tagged with one `ErrorKind`. The HTTP
boundary (`vidtube.middleware.error_handler`) maps kinds to status codes
through `STATUS_BY_KIND`, which must cover every member of the enum.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UPSTREAM: 502,
    ErrorKind.INTERNAL: 500,
}


class AppError(Exception):
    """An expected, user-visible failure."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        errors: list[Any] | None = None,
        data: Any = None,  # noqa: ANN401
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors = errors or []
        self.data = data

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AppError({self.kind.name}, {self.message!r})"


def bad_request(message: str, errors: list[Any] | None = None) -> AppError:
    return AppError(ErrorKind.BAD_REQUEST, message, errors=errors)


def unauthorized(message: str = "Unauthorized request") -> AppError:
    return AppError(ErrorKind.UNAUTHORIZED, message)


def forbidden(message: str) -> AppError:
    return AppError(ErrorKind.FORBIDDEN, message)


def not_found(message: str) -> AppError:
    return AppError(ErrorKind.NOT_FOUND, message)


def conflict(message: str) -> AppError:
    return AppError(ErrorKind.CONFLICT, message)


def upstream(message: str) -> AppError:
    return AppError(ErrorKind.UPSTREAM, message)


def internal(message: str) -> AppError:
    return AppError(ErrorKind.INTERNAL, message)
