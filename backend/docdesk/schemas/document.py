"""
Document schemas for request/response validation.

Defines Pydantic models for document read, review and archive operations.
Upload and metadata edits are validated by ``docdesk.services.validation``.
"""

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from docdesk.db.base import as_utc, utcnow
from docdesk.models.document import (
    Document,
    DocumentCategory,
    DocumentPriority,
    DocumentStatus,
    FileType,
)
from docdesk.schemas.user import UserSummary

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: Optional[int]) -> str:
    """Human readable size, e.g. ``0 Bytes``, ``1.5 KB``, ``2 MB``."""
    if not size:
        return "0 Bytes"
    exponent = min(int(math.log(size, 1024)), len(_SIZE_UNITS) - 1)
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {_SIZE_UNITS[exponent]}"


def age_in_days(created_at: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since creation."""
    now = now or utcnow()
    return (now - as_utc(created_at)).days


class VendorDetails(BaseModel):
    """Vendor details sub-record."""

    vendor_name: Optional[str] = None
    vendor_phone: Optional[str] = None
    vendor_date: Optional[datetime] = None
    vendor_notes: Optional[str] = None


class DocumentMetadata(BaseModel):
    """Metadata captured at upload time."""

    department: Optional[str] = Field(None, description="Uploader department at upload time")
    project_id: Optional[str] = None
    client_name: Optional[str] = None
    document_number: Optional[str] = None
    version: str = "1.0"


class DocumentRead(BaseModel):
    """Schema for reading document data."""

    id: int = Field(..., description="Document ID")
    title: str = Field(..., description="Document title")
    description: Optional[str] = Field(None, description="Description")
    category: DocumentCategory
    status: DocumentStatus
    priority: DocumentPriority
    uploaded_by: UserSummary = Field(..., description="Owner")
    reviewed_by: Optional[UserSummary] = Field(None, description="Last reviewer")
    review_date: Optional[datetime] = None
    review_comments: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_archived: bool = False
    expiry_date: Optional[datetime] = None
    download_count: int = 0
    last_download_date: Optional[datetime] = None
    vendor_details: VendorDetails
    document_metadata: DocumentMetadata
    has_file: bool = False
    file_name: Optional[str] = None
    original_name: Optional[str] = None
    file_path: Optional[str] = None
    file_size: Optional[int] = None
    file_size_formatted: Optional[str] = None
    mime_type: Optional[str] = None
    file_type: Optional[FileType] = None
    age_days: int = Field(0, description="Days since upload")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, document: Document) -> "DocumentRead":
        """Build the response shape, nesting vendor and metadata sub-records."""
        data = {
            "id": document.id,
            "title": document.title,
            "description": document.description,
            "category": document.category,
            "status": document.status,
            "priority": document.priority,
            "uploaded_by": UserSummary.model_validate(document.uploaded_by),
            "reviewed_by": (
                UserSummary.model_validate(document.reviewed_by)
                if document.reviewed_by is not None
                else None
            ),
            "review_date": as_utc(document.review_date),
            "review_comments": document.review_comments,
            "tags": list(document.tags or []),
            "is_archived": document.is_archived,
            "expiry_date": as_utc(document.expiry_date),
            "download_count": document.download_count or 0,
            "last_download_date": as_utc(document.last_download_date),
            "vendor_details": VendorDetails(
                vendor_name=document.vendor_name,
                vendor_phone=document.vendor_phone,
                vendor_date=as_utc(document.vendor_date),
                vendor_notes=document.vendor_notes,
            ),
            "document_metadata": DocumentMetadata(
                department=document.uploader_department,
                project_id=document.project_id,
                client_name=document.client_name,
                document_number=document.document_number,
                version=document.version or "1.0",
            ),
            "has_file": document.has_file,
            "age_days": age_in_days(document.created_at),
            "created_at": as_utc(document.created_at),
            "updated_at": as_utc(document.updated_at),
        }
        if document.has_file:
            data.update(
                file_name=document.file_name,
                original_name=document.original_name,
                file_path=document.file_path,
                file_size=document.file_size,
                file_size_formatted=format_file_size(document.file_size),
                mime_type=document.mime_type,
                file_type=document.file_type,
            )
        return cls(**data)


class ReviewRequest(BaseModel):
    """Admin review submission."""

    status: str = Field(..., description="approved, rejected or under_review")
    review_comments: Optional[str] = Field(None, description="Reviewer comments")


class ArchiveRequest(BaseModel):
    """Admin archive toggle."""

    is_archived: bool = Field(..., description="Archive (true) or restore (false)")


class UserDocumentStats(BaseModel):
    """Per-user document counts."""

    total_documents: int = 0
    pending_documents: int = 0
    approved_documents: int = 0
    rejected_documents: int = 0
    under_review_documents: int = 0
