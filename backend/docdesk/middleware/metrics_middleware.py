"""
Prometheus Metrics Middleware.

Tracks HTTP request count and duration for every endpoint.
"""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from docdesk.core.metrics import track_http_request


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request count, duration and status code per endpoint."""

    # Scrapes and probes would otherwise dominate the series
    EXCLUDED_PATHS = {"/metrics", "/health"}

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            track_http_request(
                method=request.method,
                endpoint=self.normalize_path(request.url.path),
                status_code=status_code,
                duration_seconds=time.perf_counter() - start_time,
            )

        return response

    @staticmethod
    def normalize_path(path: str) -> str:
        """
        Replace numeric segments with a placeholder.

        E.g., /api/v1/documents/123/download -> /api/v1/documents/{id}/download
        """
        return "/".join("{id}" if part.isdigit() else part for part in path.split("/"))
