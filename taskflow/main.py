import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from . import db_models  # noqa: F401 (register tables on Base.metadata)
from .api.errors import register_exception_handlers
from .api.v1.router import api_router
from .config import settings
from .db import Base, engine
from .logging_utils import request_id_var, setup_logging
from .rate_limit import limiter, rate_limit_exceeded_handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    setup_logging(settings.LOG_LEVEL)
    # Alembic owns the schema (alembic upgrade head); this is for throwaway databases
    if settings.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine)
        logging.getLogger("taskflow").info("schema_created url=%s", engine.url.render_as_string())
    yield


tags_metadata = [
    {"name": "auth", "description": "Signup, login, OAuth profile exchange, password reset."},
    {"name": "projects", "description": "Projects; deleting one with tasks needs ?cascade=true."},
    {"name": "goals", "description": "Goals inside projects and their linked tasks."},
    {"name": "tasks", "description": "Tasks and subtasks: CRUD, filters, history, bulk operations."},
    {"name": "categories", "description": "Per-user task categories."},
    {"name": "templates", "description": "Reusable task templates; a new account starts with a few."},
    {
        "name": "recurring-tasks",
        "description": "Schedules that create tasks from templates, with generation and previews.",
    },
    {"name": "user", "description": "Profile, password, settings, activity, account deletion."},
]

app = FastAPI(
    title="Taskflow API",
    version="1.0.0",
    description=(
        "Versioned JSON API exposed under /api/v1. Responses use the envelope "
        "{data: {<resource>: ...}, success} / {error, success, errors?}. "
        "Use OAuth2 password flow to obtain a Bearer token and access protected endpoints."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)


@app.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


app.include_router(api_router)

# Unified error handlers
register_exception_handlers(app)

# Rate limiting (global middleware + handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


# Request ID + access log middleware
@app.middleware("http")
async def request_id_and_logging(request: Request, call_next):
    start = time.perf_counter()
    incoming = request.headers.get(settings.REQUEST_ID_HEADER)
    req_id = incoming or uuid.uuid4().hex
    request.state.request_id = req_id
    token = request_id_var.set(req_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logging.getLogger("taskflow.request").info(
        "method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(response, "status_code", "-"),
        duration_ms,
        req_id,
    )
    return response

# --- Security: CORS and security headers ---

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", settings.REQUEST_ID_HEADER],
    # the client pages with X-Total-Count and correlates logs by request id
    expose_headers=["X-Total-Count", settings.REQUEST_ID_HEADER],
)

STATIC_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# Swagger UI / ReDoc load scripts and styles from a CDN
DOCS_CSP = "; ".join(
    [
        "default-src 'self'",
        "script-src 'self' https://cdn.jsdelivr.net 'unsafe-inline'",
        "style-src 'self' https://cdn.jsdelivr.net 'unsafe-inline'",
        "img-src 'self' https: data:",
        "connect-src 'self'",
        "frame-ancestors 'none'",
    ]
)
DOCS_PATHS = ("/docs", "/redoc")


def content_security_policy(path: str) -> str:
    if path.startswith(DOCS_PATHS):
        return DOCS_CSP
    return settings.SECURITY_CSP


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in STATIC_SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if settings.SECURITY_CSP:
        response.headers["Content-Security-Policy"] = content_security_policy(request.url.path)
    if settings.SECURITY_ENABLE_HSTS:
        response.headers.setdefault(
            "Strict-Transport-Security", "max-age=15552000; includeSubDomains"
        )
    return response


# --- Observability: liveness, readiness, metrics ---

@app.get("/live", tags=["meta"])
def live():
    return {"status": "live"}


@app.get("/ready", tags=["meta"])
def ready():
    """Ready once the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logging.getLogger("taskflow").warning("readiness_failed error=%s", exc.__class__.__name__)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable") from exc
    return {"status": "ready", "database": engine.dialect.name}


# Prometheus metrics at /metrics (request counts and latency per route)
Instrumentator(excluded_handlers=["/metrics", "/live", "/ready"]).instrument(app).expose(
    app, include_in_schema=False
)
