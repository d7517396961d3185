"""
Shared response schemas.

Every JSON response uses the same envelope:
``{success, message?, data?, errors?}``.
"""

from typing import Generic, List, Optional, Sequence, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from docdesk.core.exceptions import FieldError

T = TypeVar("T")


class FieldErrorSchema(BaseModel):
    """A single field-level error."""

    field: str = Field(..., description="Offending field")
    message: str = Field(..., description="Human-readable reason")


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope."""

    success: bool = Field(True, description="Whether the request succeeded")
    message: Optional[str] = Field(None, description="Human-readable message")
    data: Optional[T] = Field(None, description="Payload")
    errors: Optional[List[FieldErrorSchema]] = Field(None, description="Field errors")


class Paginated(BaseModel, Generic[T]):
    """One page of a listing."""

    items: List[T]
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def from_page(cls, page, items: List[T]) -> "Paginated[T]":
        """Wrap converted ``items`` with the counters of a service ``Page``."""
        return cls(
            items=items,
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


def error_response(
    status_code: int,
    message: str,
    errors: Optional[Sequence[FieldError]] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build a failure envelope as a JSON response."""
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = [error.to_dict() for error in errors]
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        headers=headers,
    )
