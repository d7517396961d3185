"""
User Directory Service.

Account registration, credential checks, profile edits and the admin user
listing. Users are never hard-deleted; admins deactivate them instead.
"""

import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from docdesk.core.exceptions import (
    ConflictError,
    CredentialsError,
    FieldError,
    NotFoundError,
    ValidationError,
)
from docdesk.core.rbac import ensure_not_self_deactivation
from docdesk.core.security import get_password_hash, verify_password
from docdesk.db.base import utcnow
from docdesk.models.user import User, UserRole
from docdesk.schemas.auth import SignupRequest
from docdesk.schemas.user import ProfileUpdate
from docdesk.services.filters import UserFilter
from docdesk.services.pipeline import Page

logger = logging.getLogger(__name__)


class UserService:
    """User directory operations on one database session."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_by_employee_id(self, employee_id: str) -> Optional[User]:
        return self.db.scalar(
            select(User).where(User.employee_id == employee_id.strip().upper())
        )

    def register(self, data: SignupRequest, role: UserRole = UserRole.USER) -> User:
        """
        Create an account.

        Self signup always passes ``UserRole.USER``; only the admin signup
        path creates admins.

        Raises:
            ConflictError: The employee ID or email is already registered.
        """
        employee_id = data.employee_id.upper()
        email = str(data.email).lower()

        if self.db.scalar(select(User.id).where(User.employee_id == employee_id)) is not None:
            raise ConflictError("Employee ID already exists")
        if self.db.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError("Email already registered")

        user = User(
            employee_id=employee_id,
            name=data.name,
            email=email,
            hashed_password=get_password_hash(data.password),
            department=data.department,
            position=data.position,
            phone_number=data.phone_number,
            role=role,
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Employee ID or email already registered")
        self.db.refresh(user)

        logger.info(f"Registered {role.value} account {user.employee_id} (id={user.id})")
        return user

    def authenticate(self, employee_id: str, password: str) -> User:
        """
        Check credentials and stamp ``last_login``.

        Raises:
            CredentialsError: Unknown employee, wrong password or a
                deactivated account.
        """
        user = self.get_by_employee_id(employee_id)
        if user is None or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for employee ID {employee_id}")
            raise CredentialsError("Invalid credentials")
        if not user.is_active:
            logger.warning(f"Login attempt on deactivated account {user.employee_id}")
            raise CredentialsError("Account is deactivated. Please contact administrator.")

        user.last_login = utcnow()
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.employee_id} logged in")
        return user

    def update_profile(self, user: User, changes: ProfileUpdate) -> User:
        """
        Apply profile edits.

        Raises:
            ValidationError: Nothing to update.
        """
        values = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not values:
            raise ValidationError(
                [FieldError("body", "No valid fields to update")],
                message="No valid fields to update",
            )
        for field, value in values.items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated profile fields {sorted(values)}")
        return user

    def list_users(self, filters: UserFilter, page: int = 1, limit: int = 20) -> Page[User]:
        """Newest accounts first."""
        conditions = []
        if filters.department is not None:
            conditions.append(User.department == filters.department)
        if filters.is_active is not None:
            conditions.append(User.is_active == filters.is_active)
        if filters.role is not None:
            conditions.append(User.role == filters.role)
        if filters.search:
            term = filters.search.lower()
            conditions.append(
                or_(
                    func.lower(User.name).contains(term, autoescape=True),
                    func.lower(User.employee_id).contains(term, autoescape=True),
                    func.lower(User.email).contains(term, autoescape=True),
                )
            )

        total = self.db.scalar(select(func.count(User.id)).where(*conditions)) or 0
        users = self.db.scalars(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return Page(items=list(users), page=page, limit=limit, total=total)

    def set_active(self, actor: User, user_id: int, is_active: bool) -> User:
        """
        Activate or deactivate an account.

        Raises:
            NotFoundError: No such user.
            ForbiddenError: An admin deactivating their own account.
        """
        user = self.get(user_id)
        ensure_not_self_deactivation(actor, user.id, is_active)
        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)
        state = "activated" if is_active else "deactivated"
        logger.info(f"Admin {actor.id} {state} user {user.id}")
        return user
