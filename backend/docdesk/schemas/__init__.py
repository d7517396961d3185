"""
Pydantic schemas for request/response validation.
"""

from docdesk.schemas.user import UserRead, UserSummary, ProfileUpdate, UserStatusUpdate
from docdesk.schemas.auth import SignupRequest, LoginRequest, TokenPayload, AuthResult
from docdesk.schemas.document import DocumentRead, ReviewRequest, ArchiveRequest

__all__ = [
    "UserRead",
    "UserSummary",
    "ProfileUpdate",
    "UserStatusUpdate",
    "SignupRequest",
    "LoginRequest",
    "TokenPayload",
    "AuthResult",
    "DocumentRead",
    "ReviewRequest",
    "ArchiveRequest",
]
