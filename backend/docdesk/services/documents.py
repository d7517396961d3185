"""
Document Service.

Owner and admin operations on document records and their blobs. Every
single-document operation checks existence first (``NotFoundError``) and
then the caller's capability (``ForbiddenError``) before mutating anything.

Upload writes the blob before the record and removes the blob again if the
record cannot be written. Delete removes the blob before the record. Neither
pair is atomic.
"""

import io
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docdesk.config import settings
from docdesk.core import metrics
from docdesk.core.exceptions import DocDeskError, NotFoundError, UpstreamFailure
from docdesk.core.rbac import ensure_can_delete, ensure_can_edit, ensure_can_view
from docdesk.db.base import utcnow
from docdesk.models.document import Document
from docdesk.models.user import User
from docdesk.services.filters import DocumentFilter, SortSpec
from docdesk.services.pipeline import Page, Pipeline, SqlAlchemyRunner, paginate
from docdesk.services.storage_service import LocalStorageService, StoredFile
from docdesk.services.validation import FileInfo, validate_document_update, validate_new_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Download:
    """What the HTTP layer needs to stream a blob back."""

    path: Path
    filename: str
    media_type: str


class DocumentService:
    """
    Document operations on one database session.

    Args:
        db: Database session.
        storage: Blob storage.
        runner: Pipeline runner; defaults to SQL over ``db``.
        allowed_content_types: Accepted upload MIME types.
        max_file_size: Upload size limit in bytes.
    """

    def __init__(
        self,
        db: Session,
        storage: LocalStorageService,
        runner=None,
        allowed_content_types: Optional[Sequence[str]] = None,
        max_file_size: Optional[int] = None,
    ):
        self.db = db
        self.storage = storage
        self.runner = runner or SqlAlchemyRunner(db)
        self.allowed_content_types = allowed_content_types or settings.ALLOWED_CONTENT_TYPES
        self.max_file_size = max_file_size or settings.MAX_FILE_SIZE

    def _get(self, document_id: int) -> Document:
        document = self.db.get(Document, document_id)
        if document is None:
            raise NotFoundError("Document not found")
        return document

    def _discard_blob(self, key: str) -> None:
        """Best-effort blob removal; failures are logged, not raised."""
        try:
            self.storage.delete(key)
        except DocDeskError as e:
            logger.error(f"Failed to remove blob {key}: {e.message}")

    def create(
        self,
        owner: User,
        fields: Mapping[str, Any],
        content: Optional[bytes] = None,
        original_name: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Document:
        """
        Create a document, with or without a file.

        Raises:
            ValidationError: Invalid fields or file. Nothing is stored.
            UpstreamFailure: The blob or the record could not be written.
        """
        file_info = None
        if content is not None:
            file_info = FileInfo(
                original_name=original_name or "document",
                mime_type=content_type or "application/octet-stream",
                size=len(content),
            )

        draft = validate_new_document(
            fields,
            file_info,
            allowed_content_types=self.allowed_content_types,
            max_file_size=self.max_file_size,
        ).unwrap()

        stored: Optional[StoredFile] = None
        if draft.has_file:
            stored = self.storage.save(
                io.BytesIO(content),
                file_info.original_name,
                file_info.mime_type,
                owner.id,
            )

        document = Document(
            **draft.as_model_kwargs(),
            uploaded_by_id=owner.id,
            uploader_department=owner.department,
        )
        if stored is not None:
            document.file_name = stored.file_name
            document.file_path = stored.file_path
            document.file_size = stored.file_size
            document.mime_type = stored.mime_type

        self.db.add(document)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save document record for user {owner.id}: {e}")
            if stored is not None:
                self._discard_blob(stored.file_path)
            raise UpstreamFailure("Failed to save document")
        self.db.refresh(document)

        metrics.track_upload(document.has_file, document.category.value, document.file_size or 0)
        logger.info(
            f"Document {document.id} created by user {owner.id} "
            f"(has_file={document.has_file}, category={document.category.value})"
        )
        return document

    def get_for(self, user: User, document_id: int) -> Document:
        document = self._get(document_id)
        ensure_can_view(user, document)
        return document

    def list_own(
        self,
        owner: User,
        filters: DocumentFilter,
        sort: SortSpec,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Document]:
        """The caller's non-archived documents."""
        pipeline = replace(filters, owner_id=owner.id).to_pipeline()
        return paginate(self.runner, sort.apply(pipeline), page, limit)

    def search(
        self,
        owner: User,
        query: Optional[str],
        filters: DocumentFilter,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Document]:
        """
        Full-text search over the caller's documents.

        Matches are ranked by relevance and then newest first. A blank query
        returns every matching document, newest first.
        """
        pipeline = replace(filters, owner_id=owner.id).to_pipeline()
        if query and query.strip():
            pipeline = pipeline.search(query).sort(("score", True), ("created_at", True))
        else:
            pipeline = pipeline.sort(("created_at", True))
        return paginate(self.runner, pipeline, page, limit)

    def update(self, user: User, document_id: int, raw: Mapping[str, Any]) -> Document:
        """
        Owner metadata edit.

        Raises:
            ValidationError: Invalid changes.
            NotFoundError: No such document.
            ForbiddenError: Not the owner, or the document has a verdict.
        """
        changes = validate_document_update(raw).unwrap()
        document = self._get(document_id)
        ensure_can_edit(user, document)

        for field, value in changes.items():
            setattr(document, field, value)
        self.db.commit()
        self.db.refresh(document)
        logger.info(f"Document {document.id} updated by owner: {sorted(changes)}")
        return document

    def delete(self, user: User, document_id: int) -> None:
        """
        Remove the blob, then the record.

        A blob that cannot be removed is logged and the record is deleted
        anyway.
        """
        document = self._get(document_id)
        ensure_can_delete(user, document)

        actor = "owner" if document.uploaded_by_id == user.id else "admin"
        if document.has_file and document.file_path:
            self._discard_blob(document.file_path)

        self.db.delete(document)
        self.db.commit()

        metrics.track_deletion(actor)
        logger.info(f"Document {document_id} deleted by {actor} {user.id}")

    def prepare_download(self, user: User, document_id: int) -> Download:
        """
        Resolve the blob for a download and count it.

        The counter is a plain read-modify-write, so concurrent downloads may
        lose increments.

        Raises:
            NotFoundError: No such document, no file attached, or the blob
                is missing on disk.
            ForbiddenError: Not the owner and not an admin.
        """
        document = self._get(document_id)
        ensure_can_view(user, document)

        if not document.has_file or not document.file_path:
            raise NotFoundError("No file attached to this document")
        if not self.storage.exists(document.file_path):
            logger.error(f"Blob missing for document {document.id}: {document.file_path}")
            raise NotFoundError("File not found on server")

        document.download_count = (document.download_count or 0) + 1
        document.last_download_date = utcnow()
        self.db.commit()

        metrics.track_download()
        return Download(
            path=self.storage.path_for(document.file_path),
            filename=document.original_name or document.file_name,
            media_type=document.mime_type or "application/octet-stream",
        )

    def admin_list(
        self,
        filters: DocumentFilter,
        sort: SortSpec,
        page: int = 1,
        limit: int = 20,
    ) -> Page[Document]:
        """Every non-archived document, joined with its owner."""
        pipeline = filters.to_pipeline(Pipeline().join_owner())
        return paginate(self.runner, sort.apply(pipeline), page, limit)

    def set_archived(self, admin: User, document_id: int, is_archived: bool) -> Document:
        document = self._get(document_id)
        document.is_archived = is_archived
        self.db.commit()
        self.db.refresh(document)
        state = "archived" if is_archived else "restored"
        logger.info(f"Document {document.id} {state} by admin {admin.id}")
        return document

