"""
Tests for dashboard statistics, summary reports and per-user counts.
"""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from docdesk.core.exceptions import ValidationError
from docdesk.models.document import DocumentCategory, DocumentStatus
from docdesk.services.filters import DocumentFilter
from docdesk.services.pipeline import InMemoryRunner
from docdesk.services.reports import ReportService, local_day_bounds, resolve_timezone

from conftest import make_document, make_user


class TestDayBounds:
    """Calendar day boundaries in the caller's zone."""

    def test_utc_day(self):
        now = datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)
        start, end = local_day_bounds(now, ZoneInfo("UTC"))
        assert start == datetime(2024, 3, 10, tzinfo=timezone.utc)
        assert end == datetime(2024, 3, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)

    def test_day_in_ahead_zone(self):
        # 20:00 UTC is already the next day in Tokyo (UTC+9)
        now = datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc)
        start, end = local_day_bounds(now, ZoneInfo("Asia/Tokyo"))
        assert start == datetime(2024, 3, 10, 15, 0, tzinfo=timezone.utc)
        assert end == datetime(2024, 3, 11, 14, 59, 59, 999000, tzinfo=timezone.utc)

    def test_unknown_zone(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_timezone("Mars/Olympus_Mons")
        assert exc_info.value.errors[0].field == "tz"

    def test_default_zone(self):
        assert resolve_timezone(None) == ZoneInfo("UTC")


class TestDashboard:
    """Counts shown on the admin dashboard."""

    def test_statistics(self, db, test_user, other_user, admin_user):
        now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
        make_document(db, test_user, created_at=now - timedelta(hours=1))
        make_document(db, test_user, status=DocumentStatus.APPROVED, created_at=now - timedelta(days=2))
        make_document(db, other_user, status=DocumentStatus.REJECTED, created_at=now)
        make_document(db, other_user, status=DocumentStatus.UNDER_REVIEW, created_at=now - timedelta(days=1))
        make_document(db, other_user, is_archived=True, created_at=now)

        stats = ReportService(db).dashboard_statistics(tz=ZoneInfo("UTC"), now=now)

        assert stats.total_users == 2
        assert stats.total_documents == 4
        assert stats.pending_documents == 1
        assert stats.approved_documents == 1
        assert stats.rejected_documents == 1
        assert stats.under_review_documents == 1
        assert stats.today_uploads == 2

    def test_charts_sorted_by_count(self, db, test_user):
        make_document(db, test_user, category=DocumentCategory.COMPLIANCE)
        make_document(db, test_user, category=DocumentCategory.COMPLIANCE)
        make_document(db, test_user, category=DocumentCategory.OTHER)

        charts = ReportService(db).dashboard_charts()

        assert [(g.key, g.count) for g in charts.documents_by_category] == [
            ("compliance", 2),
            ("other", 1),
        ]
        assert [(g.key, g.count) for g in charts.documents_by_status] == [("pending", 3)]

    def test_recent_lists(self, db, test_user):
        for i in range(12):
            make_document(db, test_user, title=f"Doc {i}")
        for i in range(6):
            make_user(db, f"NEW{i:03d}")

        reports = ReportService(db)
        recent = reports.recent_documents(10)
        users = reports.recent_users(5)

        assert len(recent) == 10
        assert recent[0].title == "Doc 11"
        assert len(users) == 5
        assert users[0].employee_id == "NEW005"


class TestSummaryReport:
    """Totals and breakdowns for a period."""

    def test_summary_over_department(self, db, test_user, other_user, admin_user):
        created = datetime(2024, 2, 1, tzinfo=timezone.utc)
        make_document(
            db,
            test_user,
            file_size=1000,
            has_file=True,
            status=DocumentStatus.APPROVED,
            created_at=created,
            review_date=created + timedelta(hours=4),
        )
        make_document(
            db,
            test_user,
            file_size=500,
            has_file=True,
            status=DocumentStatus.REJECTED,
            category=DocumentCategory.COMPLIANCE,
            created_at=created,
            review_date=created + timedelta(hours=2),
        )
        make_document(db, test_user, created_at=created)
        make_document(db, other_user, file_size=9999, created_at=created)

        report = ReportService(db).summary(DocumentFilter(department="Engineering"))

        assert report.filters.department == "Engineering"
        assert report.summary.total_documents == 3
        assert report.summary.total_size == 1500
        # Unreviewed documents stay out of the average
        assert abs(report.summary.avg_review_latency_seconds - 3 * 3600) < 1
        assert [(g.key, g.count) for g in report.by_department] == [("Engineering", 3)]
        assert {g.key: g.count for g in report.by_status} == {
            "approved": 1,
            "rejected": 1,
            "pending": 1,
        }

    def test_summary_with_date_range(self, db, test_user):
        make_document(db, test_user, created_at=datetime(2024, 1, 15, tzinfo=timezone.utc))
        make_document(db, test_user, created_at=datetime(2024, 3, 15, tzinfo=timezone.utc))

        filters = DocumentFilter.from_query(created_from="2024-01-01", created_to="2024-01-31")
        report = ReportService(db).summary(filters)

        assert report.summary.total_documents == 1
        assert report.summary.avg_review_latency is None

    def test_empty_summary(self, db):
        report = ReportService(db).summary(DocumentFilter())
        assert report.summary.total_documents == 0
        assert report.summary.total_size == 0
        assert report.by_category == []

    def test_in_memory_runner_gives_same_summary(self, db):
        created = datetime(2024, 2, 1, tzinfo=timezone.utc)
        records = [
            {
                "id": 1,
                "uploaded_by_id": 1,
                "is_archived": False,
                "category": DocumentCategory.OTHER,
                "status": DocumentStatus.APPROVED,
                "file_size": 10,
                "created_at": created,
                "review_date": created + timedelta(hours=1),
            },
            {
                "id": 2,
                "uploaded_by_id": 2,
                "is_archived": False,
                "category": DocumentCategory.OTHER,
                "status": DocumentStatus.PENDING,
                "file_size": None,
                "created_at": created,
                "review_date": None,
            },
        ]
        users = {1: {"department": "HR"}, 2: {"department": "IT"}}

        report = ReportService(db, runner=InMemoryRunner(records, users)).summary(DocumentFilter())

        assert report.summary.total_documents == 2
        assert report.summary.total_size == 10
        assert report.summary.avg_review_latency == timedelta(hours=1)
        assert {g.key for g in report.by_department} == {"HR", "IT"}


class TestUserStats:
    """Per-user counts include archived documents."""

    def test_counts_by_status(self, db, test_user, other_user):
        make_document(db, test_user)
        make_document(db, test_user, status=DocumentStatus.APPROVED, is_archived=True)
        make_document(db, test_user, status=DocumentStatus.UNDER_REVIEW)
        make_document(db, other_user)

        stats = ReportService(db).user_stats(test_user.id)

        assert stats.total_documents == 3
        assert stats.pending_documents == 1
        assert stats.approved_documents == 1
        assert stats.under_review_documents == 1
        assert stats.rejected_documents == 0
