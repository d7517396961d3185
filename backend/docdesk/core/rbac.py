"""
Role-Based Access Control (RBAC) Module.

Implements role-based permissions for API endpoint access control, plus the
per-document capability rules (view, edit, delete) that depend on ownership
and review status.

Callers check existence first and raise ``NotFoundError`` for a missing
resource; the checks here only ever raise ``ForbiddenError``.
"""

import logging
from enum import Enum
from typing import Callable, List, Set, Union

from fastapi import Depends

from docdesk.api.deps import get_current_user
from docdesk.core.exceptions import ForbiddenError
from docdesk.models.document import Document, DocumentStatus
from docdesk.models.user import User

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """User roles."""

    USER = "user"    # Employee - uploads and manages own documents
    ADMIN = "admin"  # Reviews every document and manages accounts


class Permission(str, Enum):
    """Granular permissions for fine-grained access control."""

    # Document permissions
    DOCUMENT_CREATE = "document:create"
    DOCUMENT_READ = "document:read"
    DOCUMENT_READ_ALL = "document:read_all"
    DOCUMENT_UPDATE = "document:update"
    DOCUMENT_DELETE = "document:delete"
    DOCUMENT_DELETE_ALL = "document:delete_all"
    DOCUMENT_REVIEW = "document:review"
    DOCUMENT_ARCHIVE = "document:archive"

    # User management permissions
    USER_VIEW = "user:view"
    USER_CREATE_ADMIN = "user:create_admin"
    USER_UPDATE_STATUS = "user:update_status"

    # Reporting
    REPORT_VIEW = "report:view"


_USER_PERMISSIONS = {
    Permission.DOCUMENT_CREATE,
    Permission.DOCUMENT_READ,
    Permission.DOCUMENT_UPDATE,
    Permission.DOCUMENT_DELETE,
}

# Role to permissions mapping
ROLE_PERMISSIONS: dict[Role, Set[Permission]] = {
    Role.USER: set(_USER_PERMISSIONS),
    Role.ADMIN: _USER_PERMISSIONS | {
        Permission.DOCUMENT_READ_ALL,
        Permission.DOCUMENT_DELETE_ALL,
        Permission.DOCUMENT_REVIEW,
        Permission.DOCUMENT_ARCHIVE,
        Permission.USER_VIEW,
        Permission.USER_CREATE_ADMIN,
        Permission.USER_UPDATE_STATUS,
        Permission.REPORT_VIEW,
    },
}

# Owners may no longer edit once a review has reached a verdict
LOCKED_FOR_EDIT = {DocumentStatus.APPROVED, DocumentStatus.REJECTED}


def role_of(user: User) -> Role:
    return Role(user.role) if user.role else Role.USER


def get_role_permissions(role: Role) -> Set[Permission]:
    """Get all permissions for a given role."""
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(user_role: Role, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    return permission in get_role_permissions(user_role)


def require_role(allowed_roles: Union[Role, List[Role]]) -> Callable:
    """
    Dependency that requires the user to have one of the allowed roles.

    Usage:
        router = APIRouter(dependencies=[Depends(require_role(Role.ADMIN))])
    """
    if isinstance(allowed_roles, Role):
        allowed_roles = [allowed_roles]

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        user_role = role_of(current_user)

        if user_role not in allowed_roles:
            logger.warning(
                f"Access denied: user {current_user.id} with role {user_role.value} "
                f"attempted to access endpoint requiring {[r.value for r in allowed_roles]}"
            )
            raise ForbiddenError("Access denied. Admin privileges required.")

        return current_user

    return role_checker


def require_permission(required_permission: Permission) -> Callable:
    """Dependency that requires the user to have a specific permission."""

    def permission_checker(current_user: User = Depends(get_current_user)) -> User:
        user_role = role_of(current_user)

        if not has_permission(user_role, required_permission):
            logger.warning(
                f"Access denied: user {current_user.id} with role {user_role.value} "
                f"lacks permission {required_permission.value}"
            )
            raise ForbiddenError(
                f"Insufficient permissions. Required: {required_permission.value}"
            )

        return current_user

    return permission_checker


def is_owner(user: User, document: Document) -> bool:
    return document.uploaded_by_id == user.id


def can_view_document(user: User, document: Document) -> bool:
    """Owner or anyone allowed to read every document."""
    return is_owner(user, document) or has_permission(role_of(user), Permission.DOCUMENT_READ_ALL)


def can_edit_document(user: User, document: Document) -> bool:
    """
    Only the owner edits metadata, and only before a verdict.

    Admins change status through the review path instead.
    """
    return is_owner(user, document) and document.status not in LOCKED_FOR_EDIT


def can_delete_document(user: User, document: Document) -> bool:
    """Owner while not approved; admins unconditionally."""
    if has_permission(role_of(user), Permission.DOCUMENT_DELETE_ALL):
        return True
    return is_owner(user, document) and document.status != DocumentStatus.APPROVED


def _deny(user: User, action: str, document: Document, message: str) -> None:
    logger.warning(
        f"Access denied: user {user.id} may not {action} document {document.id} "
        f"(owner {document.uploaded_by_id}, status {document.status.value})"
    )
    raise ForbiddenError(message)


def ensure_can_view(user: User, document: Document) -> None:
    if not can_view_document(user, document):
        _deny(user, "view", document, "Access denied")


def ensure_can_edit(user: User, document: Document) -> None:
    if not is_owner(user, document):
        _deny(user, "edit", document, "Access denied. You can only edit your own documents.")
    if not can_edit_document(user, document):
        _deny(user, "edit", document, "Cannot edit document that has been approved or rejected")


def ensure_can_delete(user: User, document: Document) -> None:
    if not is_owner(user, document) and not can_delete_document(user, document):
        _deny(user, "delete", document, "Access denied. You can only delete your own documents.")
    if not can_delete_document(user, document):
        _deny(user, "delete", document, "Cannot delete approved document")


def ensure_not_self_deactivation(actor: User, target_id: int, is_active: bool) -> None:
    """An admin may not deactivate their own account."""
    if actor.id == target_id and not is_active:
        logger.warning(f"Admin {actor.id} attempted to deactivate own account")
        raise ForbiddenError("Cannot deactivate your own account")
