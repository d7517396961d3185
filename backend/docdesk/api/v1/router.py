"""
API v1 router aggregating all endpoint routers.
"""

from fastapi import APIRouter

from docdesk.api.v1.endpoints import admin, auth, documents

api_router = APIRouter()

api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)
api_router.include_router(
    documents.router,
    prefix="/documents",
    tags=["Documents"],
)
api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)
