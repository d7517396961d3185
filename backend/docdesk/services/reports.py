"""
Reporting Service.

Dashboard statistics, the summary report and per-user counts. All document
figures are built as pipelines, so the same report can be computed by the
SQL runner or by the in-memory runner.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from docdesk.config import settings
from docdesk.core.exceptions import FieldError, ValidationError
from docdesk.db.base import utcnow
from docdesk.models.document import DocumentStatus
from docdesk.models.user import User, UserRole
from docdesk.schemas.report import (
    DashboardCharts,
    DashboardStatistics,
    GroupCount,
    ReportFilters,
    ReportSummary,
    SummaryReport,
)
from docdesk.schemas.document import UserDocumentStats
from docdesk.services.filters import DocumentFilter
from docdesk.services.pipeline import AvgDuration, Count, Pipeline, SqlAlchemyRunner, Sum

logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """
    Look up an IANA zone, defaulting to ``DEFAULT_TIMEZONE``.

    Raises:
        ValidationError: Unknown zone name.
    """
    try:
        return ZoneInfo(name or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError([FieldError("tz", f"Unknown timezone: {name}")])


def local_day_bounds(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """
    UTC bounds of the calendar day containing ``now`` in ``tz``.

    The day runs from 00:00:00.000 to 23:59:59.999 local time.
    """
    local_date = now.astimezone(tz).date()
    start = datetime.combine(local_date, time.min, tzinfo=tz)
    end = datetime.combine(local_date + timedelta(days=1), time.min, tzinfo=tz) - timedelta(
        milliseconds=1
    )
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _group_counts(rows) -> List[GroupCount]:
    return [GroupCount(key=row["key"], count=row["count"]) for row in rows]


class ReportService:
    """Report queries on one database session."""

    def __init__(self, db: Session, runner=None):
        self.db = db
        self.runner = runner or SqlAlchemyRunner(db)

    def _count(self, pipeline: Pipeline) -> int:
        return self.runner.count(pipeline)

    def dashboard_statistics(
        self,
        tz: Optional[ZoneInfo] = None,
        now: Optional[datetime] = None,
    ) -> DashboardStatistics:
        """Counts over non-archived documents plus employee and today's uploads."""
        tz = tz or resolve_timezone(None)
        start, end = local_day_bounds(now or utcnow(), tz)
        active = DocumentFilter().to_pipeline()

        def by_status(status: DocumentStatus) -> int:
            return self._count(active.match("status", status))

        total_users = self.db.scalar(
            select(func.count(User.id)).where(User.role == UserRole.USER)
        ) or 0
        return DashboardStatistics(
            total_users=total_users,
            total_documents=self._count(active),
            pending_documents=by_status(DocumentStatus.PENDING),
            approved_documents=by_status(DocumentStatus.APPROVED),
            rejected_documents=by_status(DocumentStatus.REJECTED),
            under_review_documents=by_status(DocumentStatus.UNDER_REVIEW),
            today_uploads=self._count(
                active.match("created_at", start, op="gte").match("created_at", end, op="lte")
            ),
        )

    def dashboard_charts(self) -> DashboardCharts:
        active = DocumentFilter().to_pipeline()

        def counts_by(key: str) -> List[GroupCount]:
            pipeline = active.group(key, count=Count()).sort(("count", True), ("key", False))
            return _group_counts(self.runner.run(pipeline))

        return DashboardCharts(
            documents_by_status=counts_by("status"),
            documents_by_category=counts_by("category"),
        )

    def recent_documents(self, limit: int = 10):
        pipeline = DocumentFilter().to_pipeline().sort(("created_at", True), ("id", True))
        return self.runner.run(pipeline.paginate(1, limit))

    def recent_users(self, limit: int = 5) -> List[User]:
        return list(
            self.db.scalars(
                select(User).order_by(User.created_at.desc(), User.id.desc()).limit(limit)
            ).all()
        )

    def summary(self, filters: DocumentFilter) -> SummaryReport:
        """
        Totals and breakdowns over documents matching ``filters``.

        The average review latency only counts reviewed documents, so
        unreviewed ones are left out of the denominator.
        """
        base = filters.to_pipeline(Pipeline().join_owner())

        totals = self.runner.run(
            base.group(
                None,
                count=Count(),
                total_size=Sum("file_size"),
                review_latency=AvgDuration("created_at", "review_date"),
            )
        )
        row = totals[0] if totals else {"count": 0, "total_size": 0, "review_latency": None}
        latency = row["review_latency"]

        def breakdown(key: str) -> List[GroupCount]:
            return _group_counts(
                self.runner.run(base.group(key, count=Count()).sort(("count", True), ("key", False)))
            )

        return SummaryReport(
            filters=ReportFilters(
                start_date=filters.created_from,
                end_date=filters.created_to,
                department=filters.department,
            ),
            summary=ReportSummary(
                total_documents=row["count"] or 0,
                total_size=row["total_size"] or 0,
                avg_review_latency=latency,
                avg_review_latency_seconds=latency.total_seconds() if latency is not None else None,
            ),
            by_category=breakdown("category"),
            by_department=breakdown("owner.department"),
            by_status=breakdown("status"),
        )

    def user_stats(self, owner_id: int) -> UserDocumentStats:
        """Per-status counts of every document the user uploaded, archived included."""
        rows = self.runner.run(
            DocumentFilter(owner_id=owner_id, include_archived=True)
            .to_pipeline()
            .group("status", count=Count())
        )
        counts = {row["key"]: row["count"] for row in rows}
        return UserDocumentStats(
            total_documents=sum(counts.values()),
            pending_documents=counts.get(DocumentStatus.PENDING.value, 0),
            approved_documents=counts.get(DocumentStatus.APPROVED.value, 0),
            rejected_documents=counts.get(DocumentStatus.REJECTED.value, 0),
            under_review_documents=counts.get(DocumentStatus.UNDER_REVIEW.value, 0),
        )
