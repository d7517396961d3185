"""
API dependencies for dependency injection.

Provides common dependencies like database sessions, blob storage and
authentication.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from docdesk.core.exceptions import CredentialsError
from docdesk.core.security import decode_access_token
from docdesk.db.session import get_db
from docdesk.models.user import User
from docdesk.services.storage_service import LocalStorageService

# Missing tokens are reported through CredentialsError so they get the
# standard envelope instead of FastAPI's default 401 body.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_current_user(
    db: Annotated[Session, Depends(get_db)],
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
) -> User:
    """
    Get the current authenticated user from the bearer token.

    Args:
        db: Database session.
        token: JWT access token from Authorization header.

    Returns:
        User: The authenticated user.

    Raises:
        CredentialsError: If the token is missing or invalid, or the user is
            unknown or deactivated.
    """
    if not token:
        raise CredentialsError("Access denied. No token provided.")

    payload = decode_access_token(token)
    if payload is None:
        raise CredentialsError("Invalid token")

    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError):
        raise CredentialsError("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise CredentialsError("Invalid token. User not found.")
    if not user.is_active:
        raise CredentialsError("Account is deactivated.")

    return user


def get_storage(request: Request) -> LocalStorageService:
    """Blob storage constructed at startup and kept on ``app.state``."""
    return request.app.state.storage


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[Session, Depends(get_db)]
