"""
SQLAlchemy ORM models.

Import all models here so they are registered on the metadata.
"""

from docdesk.models.user import User, UserRole
from docdesk.models.document import (
    Document,
    DocumentStatus,
    DocumentCategory,
    DocumentPriority,
    FileType,
)

__all__ = [
    "User",
    "UserRole",
    "Document",
    "DocumentStatus",
    "DocumentCategory",
    "DocumentPriority",
    "FileType",
]
