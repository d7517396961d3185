"""
Authentication endpoints for signup, login and the caller's profile.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from docdesk.api.deps import CurrentUser
from docdesk.api.providers import Users
from docdesk.core.rate_limiter import limiter, RATE_LIMITS
from docdesk.core.rbac import Permission, require_permission
from docdesk.core.security import create_access_token
from docdesk.models.user import User, UserRole
from docdesk.schemas.auth import AuthResult, LoginRequest, SignupRequest
from docdesk.schemas.common import ApiResponse
from docdesk.schemas.user import ProfileUpdate, UserRead

router = APIRouter()


def _auth_result(user: User) -> AuthResult:
    token = create_access_token(subject=user.id, role=user.role.value)
    return AuthResult(user=UserRead.model_validate(user), token=token)


@router.post(
    "/signup",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new employee account",
)
@limiter.limit(RATE_LIMITS["signup"])
async def signup(request: Request, data: SignupRequest, users: Users):
    """
    Self signup. The account is always created with the user role.
    """
    user = users.register(data, role=UserRole.USER)
    return ApiResponse(message="User registered successfully", data=_auth_result(user))


@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    summary="Login and get access token",
)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, credentials: LoginRequest, users: Users):
    """
    Authenticate by employee ID and password and return a bearer token.
    """
    user = users.authenticate(credentials.employee_id, credentials.password)
    return ApiResponse(message="Login successful", data=_auth_result(user))


@router.post(
    "/admin/signup",
    response_model=ApiResponse[UserRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create an admin account",
)
async def admin_signup(
    data: SignupRequest,
    users: Users,
    admin: Annotated[User, Depends(require_permission(Permission.USER_CREATE_ADMIN))],
):
    """
    Create another administrator. Only admins may call this.
    """
    user = users.register(data, role=UserRole.ADMIN)
    return ApiResponse(
        message="Admin account created successfully",
        data=UserRead.model_validate(user),
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserRead],
    response_model_exclude_none=True,
    summary="Get the caller's profile",
)
async def get_profile(current_user: CurrentUser):
    return ApiResponse(data=UserRead.model_validate(current_user))


@router.put(
    "/profile",
    response_model=ApiResponse[UserRead],
    response_model_exclude_none=True,
    summary="Update the caller's profile",
)
async def update_profile(changes: ProfileUpdate, current_user: CurrentUser, users: Users):
    user = users.update_profile(current_user, changes)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserRead.model_validate(user),
    )


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Logout",
)
async def logout(current_user: CurrentUser):
    """
    Tokens are stateless; the client discards its token.
    """
    return ApiResponse(message="Logged out successfully")
