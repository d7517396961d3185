"""
User schemas for request/response validation.

Defines Pydantic models for user-related API operations.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from docdesk.models.user import UserRole


class UserSummary(BaseModel):
    """Compact user reference embedded in document responses."""

    id: int
    name: str
    employee_id: str
    department: str

    class Config:
        from_attributes = True


class UserRead(BaseModel):
    """Schema for reading user data. The password hash is never exposed."""

    id: int = Field(..., description="User ID")
    employee_id: str = Field(..., description="Employee ID")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    department: str = Field(..., description="Department")
    position: Optional[str] = Field(None, description="Job title")
    phone_number: Optional[str] = Field(None, description="Phone number")
    role: UserRole = Field(..., description="user or admin")
    is_active: bool = Field(True, description="Whether user is active")
    last_login: Optional[datetime] = Field(None, description="Last login time")
    date_of_joining: Optional[datetime] = Field(None, description="Account creation time")

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Fields an employee may change on their own profile."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    department: Optional[str] = Field(None, min_length=2, max_length=50)
    position: Optional[str] = Field(None, min_length=2, max_length=50)
    phone_number: Optional[str] = Field(None, max_length=20)

    @field_validator("name", "department", "position", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class UserStatusUpdate(BaseModel):
    """Admin request to activate or deactivate an account."""

    is_active: bool
