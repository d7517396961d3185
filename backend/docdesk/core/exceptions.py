"""
Custom exception classes for the application.

Services raise these; the handlers registered in ``docdesk.main`` turn them
into the standard response envelope with the matching HTTP status.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional

from fastapi import status


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class DocDeskError(Exception):
    """Base exception for application errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DocDeskError):
    """Raised for malformed or out-of-range input, before any persistence."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(
        self,
        errors: Optional[List[FieldError]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = list(errors or [])


class CredentialsError(DocDeskError):
    """Raised when authentication credentials are missing or invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Could not validate credentials"


class ForbiddenError(DocDeskError):
    """Raised when the resource exists but the caller lacks the capability."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(DocDeskError):
    """Raised when a requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(DocDeskError):
    """Raised on uniqueness violations such as a duplicate employee ID."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UpstreamFailure(DocDeskError):
    """Raised when blob storage or the datastore is unavailable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "A backing service is unavailable"
