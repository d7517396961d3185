"""
Prometheus Metrics Module.

Exposes application metrics for monitoring with Prometheus.
"""

from prometheus_client import Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response

# ============================================
# Application Info
# ============================================
APP_INFO = Info(
    "app_info",
    "Application information"
)
APP_INFO.info({
    "app_name": "docdesk",
    "version": "1.0.0",
})

# ============================================
# Document Metrics
# ============================================
DOCUMENT_UPLOADS_TOTAL = Counter(
    "document_uploads_total",
    "Total number of documents created",
    ["has_file", "category"]
)

UPLOAD_SIZE_BYTES = Histogram(
    "upload_size_bytes",
    "Size of uploaded documents in bytes",
    buckets=[1024, 10240, 102400, 1048576, 5242880, 10485760]  # 1KB to 10MB
)

DOCUMENT_REVIEWS_TOTAL = Counter(
    "document_reviews_total",
    "Total number of document reviews",
    ["status"]
)

DOCUMENT_DOWNLOADS_TOTAL = Counter(
    "document_downloads_total",
    "Total number of document downloads"
)

DOCUMENT_DELETIONS_TOTAL = Counter(
    "document_deletions_total",
    "Total number of deleted documents",
    ["actor"]  # owner, admin
)

# ============================================
# HTTP Request Metrics
# ============================================
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"]
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Metrics Router
# ============================================
router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics():
    """
    Expose Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# ============================================
# Helper Functions
# ============================================
def track_upload(has_file: bool, category: str, size_bytes: int = 0):
    """Track a created document."""
    DOCUMENT_UPLOADS_TOTAL.labels(has_file=str(has_file).lower(), category=category).inc()
    if size_bytes > 0:
        UPLOAD_SIZE_BYTES.observe(size_bytes)


def track_review(status: str):
    DOCUMENT_REVIEWS_TOTAL.labels(status=status).inc()


def track_download():
    DOCUMENT_DOWNLOADS_TOTAL.inc()


def track_deletion(actor: str):
    DOCUMENT_DELETIONS_TOTAL.labels(actor=actor).inc()


def track_http_request(method: str, endpoint: str, status_code: int, duration_seconds: float):
    """Track HTTP request metrics."""
    HTTP_REQUESTS_TOTAL.labels(
        method=method,
        endpoint=endpoint,
        status_code=str(status_code)
    ).inc()
    HTTP_REQUEST_DURATION_SECONDS.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)
