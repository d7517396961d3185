"""
Report schemas for the admin dashboard and summary report.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from docdesk.schemas.document import DocumentRead
from docdesk.schemas.user import UserRead


class GroupCount(BaseModel):
    """Count of documents sharing one grouping key."""

    key: Optional[str] = Field(None, description="Group value, e.g. a category")
    count: int = Field(..., description="Number of documents")


class DashboardStatistics(BaseModel):
    total_users: int
    total_documents: int
    pending_documents: int
    approved_documents: int
    rejected_documents: int
    under_review_documents: int
    today_uploads: int


class DashboardCharts(BaseModel):
    documents_by_status: List[GroupCount]
    documents_by_category: List[GroupCount]


class Dashboard(BaseModel):
    """Admin dashboard payload."""

    statistics: DashboardStatistics
    charts: DashboardCharts
    recent_documents: List[DocumentRead]
    recent_users: List[UserRead]


class ReportSummary(BaseModel):
    """Totals over the documents matching a report's filters."""

    total_documents: int = 0
    total_size: int = Field(0, description="Sum of file sizes in bytes")
    avg_review_latency: Optional[timedelta] = Field(
        None,
        description="Mean time from upload to review over reviewed documents",
    )
    avg_review_latency_seconds: Optional[float] = None


class ReportFilters(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    department: Optional[str] = None


class SummaryReport(BaseModel):
    """Admin summary report payload."""

    filters: ReportFilters
    summary: ReportSummary
    by_category: List[GroupCount]
    by_department: List[GroupCount]
    by_status: List[GroupCount]
