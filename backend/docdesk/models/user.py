"""
User model for the employee directory.

Employees sign in with their employee ID; the role drives RBAC.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column
import enum

from docdesk.db.base import Base, IDMixin, TimestampMixin, utcnow


class UserRole(str, enum.Enum):
    """User role enumeration."""

    USER = "user"
    ADMIN = "admin"


class User(Base, IDMixin, TimestampMixin):
    """
    Employee account.

    Attributes:
        id: Primary key.
        employee_id: Company employee ID, stored upper-cased (unique).
        name: Display name.
        email: Email address, stored lower-cased (unique).
        hashed_password: Bcrypt hashed password.
        department: Department the employee belongs to.
        position: Job title.
        phone_number: Contact number.
        role: User role for RBAC.
        is_active: Whether user can login.
        last_login: Time of the last successful login.
        date_of_joining: When the account was created.
    """

    __tablename__ = "users"

    employee_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    # Password hash (never serialized)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    department: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    position: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    phone_number: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )

    # RBAC role
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e]),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )

    # Account status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    date_of_joining: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, employee_id={self.employee_id}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        """Check if user is an admin."""
        return self.role == UserRole.ADMIN
