"""
Service providers for dependency injection.

Each request gets services bound to its own database session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from docdesk.api.deps import get_storage
from docdesk.db.session import get_db
from docdesk.services.documents import DocumentService
from docdesk.services.reports import ReportService
from docdesk.services.storage_service import LocalStorageService
from docdesk.services.users import UserService


def get_document_service(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalStorageService, Depends(get_storage)],
) -> DocumentService:
    return DocumentService(db, storage)


def get_user_service(db: Annotated[Session, Depends(get_db)]) -> UserService:
    return UserService(db)


def get_report_service(db: Annotated[Session, Depends(get_db)]) -> ReportService:
    return ReportService(db)


Documents = Annotated[DocumentService, Depends(get_document_service)]
Users = Annotated[UserService, Depends(get_user_service)]
Reports = Annotated[ReportService, Depends(get_report_service)]
