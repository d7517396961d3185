"""
Document model for uploaded files and file-less document records.

Stores document metadata, review state and the reference to the backing
blob when one exists.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    String, Integer, ForeignKey, BigInteger, Enum, Boolean, DateTime, Text, JSON,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum

from docdesk.db.base import Base, IDMixin, TimestampMixin


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class DocumentStatus(str, enum.Enum):
    """Review status of a document."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentCategory(str, enum.Enum):
    """Fixed set of document categories."""

    LEAVE_APPLICATION = "leave_application"
    EXPENSE_REPORT = "expense_report"
    PROJECT_DOCUMENT = "project_document"
    PERSONAL_DOCUMENT = "personal_document"
    COMPLIANCE = "compliance"
    HR_DOCUMENT = "hr_document"
    FINANCE_DOCUMENT = "finance_document"
    OTHER = "other"


class DocumentPriority(str, enum.Enum):
    """Document priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class FileType(str, enum.Enum):
    """Coarse file type derived from the MIME type."""

    PDF = "pdf"
    DOC = "doc"
    DOCX = "docx"
    IMAGE = "image"
    OTHER = "other"


class Document(Base, IDMixin, TimestampMixin):
    """
    Document record.

    Attributes:
        id: Primary key.
        title: Document title.
        description: Free-text description.
        category: One of ``DocumentCategory``.
        status: Review status.
        priority: Document priority.
        uploaded_by_id: Owning user.
        reviewed_by_id: Admin who last reviewed the document.
        review_date: When the document was approved or rejected.
        review_comments: Reviewer comments.
        tags: Ordered list of lower-cased tags.
        is_archived: Hidden from listings and search when set.
        has_file: Whether a blob backs this record.
        file_name / original_name / file_path / file_size / mime_type /
        file_type: Blob reference, present only when ``has_file``.
    """

    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[DocumentCategory] = mapped_column(
        Enum(DocumentCategory, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, values_callable=_enum_values),
        default=DocumentStatus.PENDING,
        nullable=False,
        index=True,
    )
    priority: Mapped[DocumentPriority] = mapped_column(
        Enum(DocumentPriority, values_callable=_enum_values),
        default=DocumentPriority.MEDIUM,
        nullable=False,
    )

    # Ownership and review attribution
    uploaded_by_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    reviewed_by_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    review_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    review_comments: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    download_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_download_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Vendor details
    vendor_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    vendor_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    vendor_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    vendor_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Document metadata
    uploader_department: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    project_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    document_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    version: Mapped[str] = mapped_column(String(20), default="1.0", nullable=False)

    # Blob reference
    has_file: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    file_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    file_type: Mapped[Optional[FileType]] = mapped_column(
        Enum(FileType, values_callable=_enum_values),
        nullable=True,
    )

    # Relationships
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id], lazy="joined")
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id], lazy="joined")

    def __repr__(self) -> str:
        """String representation of Document."""
        return f"<Document(id={self.id}, title={self.title}, status={self.status})>"
