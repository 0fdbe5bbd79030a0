"""
OpsPlan HTTP app. Every router is mounted under /api/v1, OpsPlanException
subclasses become JSON error bodies with their own status codes, and the
event bus gets its logging handler at startup.
"""
import logging
import time
import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from opsplan.config import settings
from opsplan.database import create_tables, engine
from opsplan.core.exceptions import OpsPlanException, to_http_exception
from opsplan.utils.events import configure_event_bus
from opsplan.utils.logging import configure_logging
from opsplan.routers import (
    catalog,
    inventory,
    reconciliation,
    forecasting,
    production_plans,
    suggested_pos,
    purchase_orders,
    planning_tasks,
)

configure_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Inventory lot ledger, channel reconciliation and AI-assisted production & procurement planning",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS Middleware ───────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Tag each request with an X-Request-ID (caller supplied or fresh) and report its duration."""
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)

    duration_ms = (time.perf_counter() - start) * 1000
    if settings.ENABLE_REQUEST_ID:
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

    if settings.ENABLE_REQUEST_LOGGING:
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

    return response

# ── Global Exception Handlers ─────────────────────────────────────────────────

@app.exception_handler(OpsPlanException)
async def opsplan_exception_handler(request: Request, exc: OpsPlanException) -> JSONResponse:
    """Render an OpsPlanException as ``{"success": false, "error": {code, message}}``."""
    http_exc = to_http_exception(exc)
    if http_exc.status_code >= 500:
        logger.warning("domain_error code=%s message=%s path=%s", exc.code, exc.message, request.url.path)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"success": False, "error": http_exc.detail},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": {"code": "VALIDATION_ERROR", "message": str(exc)}},
    )


# ── API Routers ───────────────────────────────────────────────────────────────
API_PREFIX = "/api/v1"
app.include_router(catalog.router, prefix=API_PREFIX)
app.include_router(inventory.router, prefix=API_PREFIX)
app.include_router(reconciliation.router, prefix=API_PREFIX)
app.include_router(forecasting.router, prefix=API_PREFIX)
app.include_router(production_plans.router, prefix=API_PREFIX)
app.include_router(suggested_pos.router, prefix=API_PREFIX)
app.include_router(purchase_orders.router, prefix=API_PREFIX)
app.include_router(planning_tasks.router, prefix=API_PREFIX)


# ── Lifecycle Events ──────────────────────────────────────────────────────────

@app.on_event("startup")
def startup_event():
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    create_tables()
    configure_event_bus()
    logger.info("EventBus initialized with LoggingHandler")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set; forecasts and PO rationales use the numeric/template fallback")


@app.on_event("shutdown")
def shutdown_event():
    logger.info("%s shutting down.", settings.APP_NAME)


# ── Health Endpoints ──────────────────────────────────────────────────────────

@app.get("/", tags=["Health"])
def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "status": "running",
    }


@app.get("/health", tags=["Health"])
def health_check():
    return {"status": "healthy", "app": settings.APP_NAME}


@app.get("/ready", tags=["Health"])
def readiness_check(request: Request):
    """Ready once the database answers a trivial query (skipped when READINESS_CHECK_DATABASE is off)."""
    db_ok = True
    db_error = None

    if settings.READINESS_CHECK_DATABASE:
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            db_ok = False
            db_error = str(exc)

    status = "ready" if db_ok else "not_ready"
    status_code = 200 if db_ok else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status,
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "request_id": getattr(request.state, "request_id", None),
            "checks": {
                "database": {
                    "enabled": settings.READINESS_CHECK_DATABASE,
                    "ok": db_ok,
                    "error": db_error,
                },
                "reasoning_service": {
                    "configured": bool(settings.OPENAI_API_KEY),
                },
            },
        },
    )
