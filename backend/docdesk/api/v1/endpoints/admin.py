"""
Admin endpoints.

Every route here requires the admin role: review, archive, listing and
deletion of any document, the user directory and reports.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from docdesk.api.deps import DbSession
from docdesk.api.providers import Documents, Reports, Users
from docdesk.core import metrics
from docdesk.core.rbac import Permission, Role, require_permission, require_role
from docdesk.models.user import User
from docdesk.schemas.common import ApiResponse, Paginated
from docdesk.schemas.document import ArchiveRequest, DocumentRead, ReviewRequest
from docdesk.schemas.report import Dashboard, SummaryReport
from docdesk.schemas.user import UserRead, UserStatusUpdate
from docdesk.services.filters import ADMIN_SORT_FIELDS, DocumentFilter, SortSpec, UserFilter
from docdesk.services.reports import resolve_timezone
from docdesk.services.workflow import review_document

require_admin = require_role(Role.ADMIN)

router = APIRouter(dependencies=[Depends(require_admin)])

Reviewer = Annotated[User, Depends(require_permission(Permission.DOCUMENT_REVIEW))]
Archiver = Annotated[User, Depends(require_permission(Permission.DOCUMENT_ARCHIVE))]
Remover = Annotated[User, Depends(require_permission(Permission.DOCUMENT_DELETE_ALL))]
Reader = Annotated[User, Depends(require_permission(Permission.DOCUMENT_READ_ALL))]
UserManager = Annotated[User, Depends(require_permission(Permission.USER_UPDATE_STATUS))]

can_view_reports = Depends(require_permission(Permission.REPORT_VIEW))
can_view_users = Depends(require_permission(Permission.USER_VIEW))
can_read_all = Depends(require_permission(Permission.DOCUMENT_READ_ALL))
PageNumber = Annotated[int, Query(ge=1, description="Page number")]
PageLimit = Annotated[int, Query(ge=1, le=100, description="Items per page")]


@router.get(
    "/dashboard",
    response_model=ApiResponse[Dashboard],
    response_model_exclude_none=True,
    dependencies=[can_view_reports],
    summary="Admin dashboard statistics",
)
async def dashboard(
    reports: Reports,
    tz: Annotated[Optional[str], Query(description="IANA timezone for 'today'")] = None,
):
    """
    Counts by status over non-archived documents, uploads during the
    caller's local day, charts and recent activity.
    """
    data = Dashboard(
        statistics=reports.dashboard_statistics(tz=resolve_timezone(tz)),
        charts=reports.dashboard_charts(),
        recent_documents=[DocumentRead.from_model(d) for d in reports.recent_documents(10)],
        recent_users=[UserRead.model_validate(u) for u in reports.recent_users(5)],
    )
    return ApiResponse(data=data)


@router.get(
    "/documents",
    response_model=ApiResponse[Paginated[DocumentRead]],
    response_model_exclude_none=True,
    dependencies=[can_read_all],
    summary="List all documents",
)
async def list_all_documents(
    documents: Documents,
    page: PageNumber = 1,
    limit: PageLimit = 20,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    category: Optional[str] = None,
    department: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
):
    filters = DocumentFilter.from_query(
        status=status_filter,
        category=category,
        department=department,
    )
    sort = SortSpec.parse(sort_by, sort_order, ADMIN_SORT_FIELDS)
    result = documents.admin_list(filters, sort, page=page, limit=limit)
    return ApiResponse(
        data=Paginated[DocumentRead].from_page(
            result, [DocumentRead.from_model(d) for d in result.items]
        )
    )


@router.put(
    "/documents/{document_id}/review",
    response_model=ApiResponse[DocumentRead],
    response_model_exclude_none=True,
    summary="Review a document",
)
async def review(document_id: int, body: ReviewRequest, admin: Reviewer, db: DbSession):
    """
    Set the status to approved, rejected or under_review.
    """
    document = review_document(db, document_id, admin, body.status, body.review_comments)
    metrics.track_review(document.status.value)
    return ApiResponse(
        message=f"Document {document.status.value} successfully",
        data=DocumentRead.from_model(document),
    )


@router.put(
    "/documents/{document_id}/archive",
    response_model=ApiResponse[DocumentRead],
    response_model_exclude_none=True,
    summary="Archive or restore a document",
)
async def archive(document_id: int, body: ArchiveRequest, admin: Archiver, documents: Documents):
    document = documents.set_archived(admin, document_id, body.is_archived)
    message = "Document archived successfully" if body.is_archived else "Document restored successfully"
    return ApiResponse(message=message, data=DocumentRead.from_model(document))


@router.delete(
    "/documents/{document_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Delete any document",
)
async def delete_any_document(document_id: int, admin: Remover, documents: Documents):
    documents.delete(admin, document_id)
    return ApiResponse(message="Document deleted successfully")


@router.get("/documents/{document_id}/download", summary="Download any document file")
async def download_any_document(document_id: int, admin: Reader, documents: Documents):
    download = documents.prepare_download(admin, document_id)
    return FileResponse(
        download.path,
        media_type=download.media_type,
        filename=download.filename,
    )


@router.get(
    "/users",
    response_model=ApiResponse[Paginated[UserRead]],
    response_model_exclude_none=True,
    dependencies=[can_view_users],
    summary="List users",
)
async def list_users(
    users: Users,
    page: PageNumber = 1,
    limit: PageLimit = 20,
    department: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    role: Optional[str] = None,
    search: Optional[str] = None,
):
    filters = UserFilter.from_query(
        department=department,
        status=status_filter,
        role=role,
        search=search,
    )
    result = users.list_users(filters, page=page, limit=limit)
    return ApiResponse(
        data=Paginated[UserRead].from_page(
            result, [UserRead.model_validate(u) for u in result.items]
        )
    )


@router.put(
    "/users/{user_id}/status",
    response_model=ApiResponse[UserRead],
    response_model_exclude_none=True,
    summary="Activate or deactivate a user",
)
async def update_user_status(user_id: int, body: UserStatusUpdate, admin: UserManager, users: Users):
    user = users.set_active(admin, user_id, body.is_active)
    state = "activated" if user.is_active else "deactivated"
    return ApiResponse(message=f"User {state} successfully", data=UserRead.model_validate(user))


@router.get(
    "/reports/summary",
    response_model=ApiResponse[SummaryReport],
    response_model_exclude_none=True,
    dependencies=[can_view_reports],
    summary="Summary report",
)
async def summary_report(
    reports: Reports,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    department: Optional[str] = None,
):
    """
    Totals and breakdowns over non-archived documents created in the
    period, optionally limited to one department.
    """
    filters = DocumentFilter.from_query(
        department=department,
        created_from=start_date,
        created_to=end_date,
    )
    return ApiResponse(data=reports.summary(filters))
