"""
Document endpoints for owners.

Upload, listing, search, metadata edits, deletion and download of the
caller's own documents. Admins may also view and download any document
through the single-document routes.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.responses import FileResponse
from starlette.datastructures import UploadFile

from docdesk.api.providers import Documents, Reports
from docdesk.core.rate_limiter import limiter, RATE_LIMITS
from docdesk.core.rbac import Permission, require_permission
from docdesk.models.user import User
from docdesk.schemas.common import ApiResponse, Paginated
from docdesk.schemas.document import DocumentRead, UserDocumentStats
from docdesk.services.filters import OWNER_SORT_FIELDS, DocumentFilter, SortSpec

router = APIRouter()

FILE_FIELD = "document"

PageNumber = Annotated[int, Query(ge=1, description="Page number")]
PageLimit = Annotated[int, Query(ge=1, le=100, description="Items per page")]

Uploader = Annotated[User, Depends(require_permission(Permission.DOCUMENT_CREATE))]
Reader = Annotated[User, Depends(require_permission(Permission.DOCUMENT_READ))]
Editor = Annotated[User, Depends(require_permission(Permission.DOCUMENT_UPDATE))]
Remover = Annotated[User, Depends(require_permission(Permission.DOCUMENT_DELETE))]


def _form_fields(form) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for key in form.keys():
        if key == FILE_FIELD:
            continue
        values = form.getlist(key)
        fields[key] = values if key == "tags" and len(values) > 1 else values[-1]
    return fields


@router.post(
    "/upload",
    response_model=ApiResponse[DocumentRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_document(request: Request, current_user: Uploader, documents: Documents):
    """
    Create a document from a multipart form.

    The optional file goes in the ``document`` part; metadata fields are
    plain form fields. ``tags`` may be repeated, a JSON array or a comma
    separated string.
    """
    form = await request.form()
    upload = form.get(FILE_FIELD)

    content = None
    original_name = None
    content_type = None
    if isinstance(upload, UploadFile) and upload.filename:
        content = await upload.read()
        original_name = upload.filename
        content_type = upload.content_type

    document = documents.create(
        current_user,
        _form_fields(form),
        content=content,
        original_name=original_name,
        content_type=content_type,
    )
    return ApiResponse(
        message="Document uploaded successfully",
        data=DocumentRead.from_model(document),
    )


@router.get(
    "",
    response_model=ApiResponse[Paginated[DocumentRead]],
    response_model_exclude_none=True,
    summary="List the caller's documents",
)
async def list_documents(
    current_user: Reader,
    documents: Documents,
    page: PageNumber = 1,
    limit: PageLimit = 10,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    category: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
):
    filters = DocumentFilter.from_query(status=status_filter, category=category)
    sort = SortSpec.parse(sort_by, sort_order, OWNER_SORT_FIELDS)
    result = documents.list_own(current_user, filters, sort, page=page, limit=limit)
    return ApiResponse(
        data=Paginated[DocumentRead].from_page(
            result, [DocumentRead.from_model(d) for d in result.items]
        )
    )


@router.get(
    "/my-stats",
    response_model=ApiResponse[UserDocumentStats],
    summary="Document counts for the caller",
)
async def my_stats(current_user: Reader, reports: Reports):
    return ApiResponse(data=reports.user_stats(current_user.id))


@router.get(
    "/search/query",
    response_model=ApiResponse[Paginated[DocumentRead]],
    response_model_exclude_none=True,
    summary="Search the caller's documents",
)
async def search_documents(
    current_user: Reader,
    documents: Documents,
    q: Optional[str] = None,
    category: Optional[str] = None,
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    page: PageNumber = 1,
    limit: PageLimit = 10,
):
    """
    Ranked by relevance (title over description over tags), newest first
    among equals.
    """
    filters = DocumentFilter.from_query(status=status_filter, category=category)
    result = documents.search(current_user, q, filters, page=page, limit=limit)
    return ApiResponse(
        data=Paginated[DocumentRead].from_page(
            result, [DocumentRead.from_model(d) for d in result.items]
        )
    )


@router.get(
    "/{document_id}",
    response_model=ApiResponse[DocumentRead],
    response_model_exclude_none=True,
    summary="Get a document",
)
async def get_document(document_id: int, current_user: Reader, documents: Documents):
    document = documents.get_for(current_user, document_id)
    return ApiResponse(data=DocumentRead.from_model(document))


@router.put(
    "/{document_id}",
    response_model=ApiResponse[DocumentRead],
    response_model_exclude_none=True,
    summary="Update document metadata",
)
async def update_document(
    document_id: int,
    changes: Annotated[Dict[str, Any], Body()],
    current_user: Editor,
    documents: Documents,
):
    document = documents.update(current_user, document_id, changes)
    return ApiResponse(
        message="Document updated successfully",
        data=DocumentRead.from_model(document),
    )


@router.delete(
    "/{document_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    summary="Delete a document",
)
async def delete_document(document_id: int, current_user: Remover, documents: Documents):
    documents.delete(current_user, document_id)
    return ApiResponse(message="Document deleted successfully")


@router.get("/{document_id}/download", summary="Download the document file")
async def download_document(document_id: int, current_user: Reader, documents: Documents):
    download = documents.prepare_download(current_user, document_id)
    return FileResponse(
        download.path,
        media_type=download.media_type,
        filename=download.filename,
    )
