"""
Review Workflow Module.

Admins move documents between review states. Approved and rejected are
verdicts and stamp ``review_date``; under_review records the reviewer
without touching the date. Any reviewable status may be applied to any
document, including one that already carries a verdict.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from docdesk.core.exceptions import FieldError, NotFoundError, ValidationError
from docdesk.db.base import utcnow
from docdesk.models.document import Document, DocumentStatus
from docdesk.models.user import User
from docdesk.services.validation import REVIEW_COMMENTS_MAX_LENGTH

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = (
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
    DocumentStatus.UNDER_REVIEW,
)
VERDICT_STATUSES = {DocumentStatus.APPROVED, DocumentStatus.REJECTED}


def parse_review(status: str, comments: Optional[str]) -> tuple[DocumentStatus, Optional[str]]:
    """
    Validate a review submission.

    Raises:
        ValidationError: Unknown status or comments that are too long.
    """
    errors = []
    new_status = None
    try:
        new_status = DocumentStatus(status)
    except ValueError:
        pass
    if new_status not in REVIEWABLE_STATUSES:
        allowed = ", ".join(s.value for s in REVIEWABLE_STATUSES)
        errors.append(FieldError("status", f"Status must be one of: {allowed}"))

    if comments is not None:
        comments = comments.strip()
        if len(comments) > REVIEW_COMMENTS_MAX_LENGTH:
            errors.append(
                FieldError(
                    "review_comments",
                    f"Review comments must be less than {REVIEW_COMMENTS_MAX_LENGTH} characters",
                )
            )

    if errors:
        raise ValidationError(errors)
    return new_status, comments or None


def review_document(
    db: Session,
    document_id: int,
    reviewer: User,
    status: str,
    comments: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Document:
    """
    Apply a review to a document.

    The status, reviewer, comments and (for verdicts) review date are written
    by one UPDATE statement.

    Args:
        db: Database session.
        document_id: Document to review.
        reviewer: Acting admin.
        status: approved, rejected or under_review.
        comments: Optional reviewer comments; kept unchanged when omitted.
        now: Review time, defaults to the current UTC time.

    Returns:
        Document: The reviewed document.

    Raises:
        ValidationError: Invalid status or comments. Nothing is written.
        NotFoundError: No such document.
    """
    new_status, comments = parse_review(status, comments)

    if db.get(Document, document_id) is None:
        raise NotFoundError("Document not found")

    values = {
        "status": new_status,
        "reviewed_by_id": reviewer.id,
        "updated_at": utcnow(),
    }
    if comments is not None:
        values["review_comments"] = comments
    if new_status in VERDICT_STATUSES:
        values["review_date"] = now or utcnow()

    db.execute(
        update(Document)
        .where(Document.id == document_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.expire_all()

    document = db.get(Document, document_id)
    logger.info(
        f"Document {document_id} reviewed by admin {reviewer.id}: {new_status.value}"
    )
    return document
