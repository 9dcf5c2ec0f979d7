"""Input checks shared by the routers and services."""

from __future__ import annotations

import uuid

from vidtube.errors import bad_request, forbidden


def parse_id(value: str | uuid.UUID, label: str = "ID") -> uuid.UUID:
    """Parse a path/query identifier, raising BadRequest when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(value)
    except (ValueError, AttributeError, TypeError) as e:
        msg = f"Invalid {label}"
        raise bad_request(msg) from e


def require_text(value: str | None, message: str) -> str:
    """Return the stripped value, or raise BadRequest if it is empty."""
    if value is None or not value.strip():
        raise bad_request(message)
    return value.strip()


def require_owner(owner_id: uuid.UUID, user_id: uuid.UUID, message: str) -> None:
    """Raise Forbidden unless the acting user owns the resource."""
    if owner_id != user_id:
        raise forbidden(message)
