"""Prometheus metrics: request count by route/status, latency, uploads by verdict, scanner fallbacks, cleanup failures."""
import re

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total requests",
    ["method", "path", "status_class"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency",
    ["method", "path"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
UPLOAD_TOTAL = Counter(
    "uploads_total",
    "Completed uploads",
    ["verdict"],  # clean | infected | error
)
SCANNER_FALLBACK_TOTAL = Counter(
    "scanner_fallback_total",
    "Uploads given the mock clean verdict because the scanner was unavailable",
)
SCAN_DURATION = Histogram(
    "scan_duration_seconds",
    "External scanner wall time",
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0),
)
CLEANUP_FAILURE_TOTAL = Counter(
    "staging_cleanup_failures_total",
    "Staged files that could not be deleted",
)

_FILE_ID_PATH = re.compile(r"^/api/files/[0-9a-fA-F-]{32,36}$")


def _status_class(status: int) -> str:
    if status < 200:
        return "1xx"
    if status < 300:
        return "2xx"
    if status < 400:
        return "3xx"
    if status < 500:
        return "4xx"
    return "5xx"


def record_request(method: str, path: str, status_code: int, latency_seconds: float) -> None:
    path = path or "/"
    # Normalize path to avoid high cardinality (/api/files/<uuid> -> /api/files/{id})
    if _FILE_ID_PATH.match(path):
        path = "/api/files/{id}"
    sc = _status_class(status_code)
    REQUEST_COUNT.labels(method=method, path=path, status_class=sc).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(latency_seconds)


def record_upload(verdict: str) -> None:
    UPLOAD_TOTAL.labels(verdict=verdict).inc()


def record_scanner_fallback() -> None:
    SCANNER_FALLBACK_TOTAL.inc()


def record_scan_duration(seconds: float) -> None:
    SCAN_DURATION.observe(seconds)


def record_cleanup_failure() -> None:
    CLEANUP_FAILURE_TOTAL.inc()


def get_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
