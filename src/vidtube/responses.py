"""Response envelope and shared schema base."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(CamelModel, Generic[DataT]):
    """Success envelope: {statusCode, data, message, success, timestamp}."""

    status_code: int
    data: DataT
    message: str = "Success"
    success: bool = True
    timestamp: datetime = Field(default_factory=_now)

    @classmethod
    def ok(cls, data: Any, message: str = "Success", status_code: int = 200) -> ApiResponse[Any]:  # noqa: ANN401
        return cls(status_code=status_code, data=data, message=message, success=status_code < 400)


def error_body(
    status_code: int,
    message: str,
    *,
    errors: list[Any] | None = None,
    data: Any = None,  # noqa: ANN401
    stack: str | None = None,
) -> dict[str, Any]:
    """Failure envelope: {success, status, message, data, errors, timestamp}."""
    body: dict[str, Any] = {
        "success": False,
        "status": "fail" if 400 <= status_code < 500 else "error",
        "message": message,
        "data": data,
        "errors": errors or [],
        "timestamp": _now().isoformat(),
    }
    if stack is not None:
        body["stack"] = stack
    return body
