"""FastAPI app: CORS, security headers, error handlers, routers."""
import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from scanvault.core.config import get_settings
from scanvault.core.deps import require_metrics_access
from scanvault.core.errors import ServiceError
from scanvault.core.metrics import get_metrics
from scanvault.core.request_logging import RequestLoggingMiddleware
from scanvault.db.session import ping
from scanvault.api.files import router as files_router

logger = logging.getLogger(__name__)

settings = get_settings()
if settings.log_json:
    request_logger = logging.getLogger("scanvault.request")
    for h in request_logger.handlers[:]:
        request_logger.removeHandler(h)
    h = logging.StreamHandler()
    h.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(h)
    request_logger.setLevel(logging.INFO)

app = FastAPI(title=settings.app_name)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none';"
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(files_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    """Liveness: no auth, no DB."""
    return {"status": "ok"}


@app.get("/readyz")
async def readyz():
    """Readiness: light DB check."""
    try:
        await ping()
        return {"status": "ok"}
    except Exception:
        logger.warning("Readiness check failed", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "detail": "database unreachable"},
        )


@app.get("/metrics", response_class=Response)
async def metrics(_: None = Depends(require_metrics_access)):
    """Prometheus metrics. Guarded by authentication (METRICS_REQUIRE_AUTH) or METRICS_SECRET + X-Metrics-Secret header."""
    body, content_type = get_metrics()
    return Response(content=body, media_type=content_type)
