"""
Authentication schemas for signup, login and JWT token handling.

Defines Pydantic models for the auth endpoints.
"""

import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from docdesk.schemas.user import UserRead

_PASSWORD_RULES = (re.compile(r"[a-z]"), re.compile(r"[A-Z]"), re.compile(r"\d"))


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class SignupRequest(BaseModel):
    """Schema for employee self-signup and admin-created accounts."""

    employee_id: str = Field(
        ...,
        min_length=3,
        max_length=20,
        pattern=r"^[A-Za-z0-9]+$",
        description="Employee ID (letters and numbers only)",
    )
    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        pattern=r"^[A-Za-z\s]+$",
        description="Full name (letters and spaces only)",
    )
    email: EmailStr = Field(..., description="Work email address")
    password: str = Field(
        ...,
        min_length=6,
        description="Password with upper, lower case letters and a number",
    )
    department: str = Field(..., min_length=2, max_length=50)
    position: Optional[str] = Field(None, min_length=2, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=20)

    @field_validator("employee_id", "name", "department", "position", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not all(rule.search(value) for rule in _PASSWORD_RULES):
            raise ValueError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one number"
            )
        return value


class LoginRequest(BaseModel):
    """Schema for user login request."""

    employee_id: str = Field(..., min_length=1, description="Employee ID")
    password: str = Field(..., min_length=1, description="User's password")

    @field_validator("employee_id", mode="before")
    @classmethod
    def strip_employee_id(cls, value):
        return _strip(value)


class TokenPayload(BaseModel):
    """Schema for decoded JWT token payload."""

    sub: Optional[str] = Field(None, description="Subject (user ID)")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    role: Optional[str] = Field(None, description="Role at issue time")


class AuthResult(BaseModel):
    """Signup/login payload: the profile plus a bearer token."""

    user: UserRead
    token: str
