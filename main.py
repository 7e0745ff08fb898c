"""
BoardGuru API.
Board governance backend: registrations, organizations, boards, meetings,
document vaults, assets, annotations and notifications.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time
import uuid

import psutil

from boardguru.config import settings
from boardguru.core.database import get_db_manager
from boardguru.core.exceptions import AppException
from boardguru.core.logging_config import (
    setup_logging,
    get_logger,
    log_operation_start,
    log_operation_end,
    log_api_request,
    request_id_var
)
from boardguru.core.responses import ResponseHandler
from boardguru.core.schema_manager import SchemaManager
from boardguru.core.storage import InMemoryStorageClient, get_storage_client

from boardguru.api.routes import auth_routes, registration_routes, organization_routes
from boardguru.api.routes import board_routes, meeting_routes
from boardguru.api.routes import vault_routes, asset_routes, annotation_routes
from boardguru.api.routes import notification_routes
from boardguru.api.middleware.request_audit_middleware import RequestAuditMiddleware


setup_logging(
    log_level="DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
    enable_performance_logging=settings.DEBUG
)

logger = get_logger(__name__)

ROUTERS = (
    auth_routes,
    registration_routes,
    organization_routes,
    board_routes,
    meeting_routes,
    vault_routes,
    asset_routes,
    annotation_routes,
    notification_routes,
)

AUDIT_EXCLUDED_PATHS = ["/", "/health", "/api/docs", "/api/redoc", "/api/openapi.json"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the connection pool (and migrate) on startup, close it on shutdown."""
    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION} "
        f"[env={settings.ENVIRONMENT}, debug={settings.DEBUG}]"
    )
    logger.perf.log_performance_snapshot("Startup")

    log_operation_start(logger, "database_initialization", auto_migrate=settings.DB_AUTO_MIGRATE)
    try:
        db_manager = get_db_manager()
        if settings.DB_AUTO_MIGRATE:
            SchemaManager.initialize_schema()
        log_operation_end(logger, "database_initialization", pool=db_manager.get_pool_status())
    except Exception as e:
        logger.critical(f"Database initialization failed: {str(e)}", exc_info=True)
        log_operation_end(logger, "database_initialization", success=False, error=str(e))
        raise

    storage = get_storage_client()
    logger.info(f"Object storage: {type(storage).__name__}")

    yield

    logger.info(f"Stopping {settings.APP_NAME}")
    try:
        get_db_manager().close_pool()
        log_operation_end(logger, "database_shutdown")
    except Exception as e:
        logger.error(f"Error closing database pool: {str(e)}", exc_info=True)
        log_operation_end(logger, "database_shutdown", success=False, error=str(e))


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Board governance platform: organizations, boards, meetings, document vaults and annotations",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.ENABLE_REQUEST_AUDIT:
    app.add_middleware(RequestAuditMiddleware, exclude_paths=AUDIT_EXCLUDED_PATHS)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Tag each request with an id and log its outcome and duration."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = request_id_var.set(request_id)
    started = time.perf_counter()

    try:
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        log_api_request(logger, request.method, request.url.path, response.status_code, duration_ms)
        if duration_ms > settings.SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {duration_ms:.0f}ms",
                extra={"duration_ms": duration_ms}
            )
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} raised {type(e).__name__}: {str(e)}", exc_info=True)
        raise
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
    return response


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Service errors that escape a route keep their status and code."""
    logger.warning(f"{request.method} {request.url.path}: {exc.error_code} {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ResponseHandler.error(exc.error_code, exc.message, exc.status_code, exc.details)
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=True)
    logger.perf.log_performance_snapshot("Unhandled Exception")
    message = str(exc) if settings.DEBUG else "An unexpected error occurred"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseHandler.error("INTERNAL_ERROR", message, 500)
    )


for module in ROUTERS:
    app.include_router(module.router, prefix="/api/v1")
logger.info(f"Registered {len(ROUTERS)} routers under /api/v1")


@app.get("/health", tags=["System"])
async def health_check():
    """Database connectivity, storage backend and process metrics."""
    process = psutil.Process()
    report = {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "storage": {
            "backend": type(get_storage_client()).__name__,
            "persistent": not isinstance(get_storage_client(), InMemoryStorageClient),
        },
        "process": {
            "memory_mb": round(process.memory_info().rss / 1024 / 1024, 2),
            "threads": process.num_threads(),
        },
    }

    try:
        db_manager = get_db_manager()
        connected = db_manager.check_connection()
        report["database"] = {"connected": connected, **db_manager.get_pool_status()}
    except Exception as e:
        logger.error(f"Health check could not reach the database: {str(e)}")
        connected = False
        report["database"] = {"connected": False, "error": str(e) if settings.DEBUG else "unavailable"}

    report["status"] = "healthy" if connected else "degraded"
    return report


@app.get("/", tags=["System"])
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
        "health": "/health",
        "api_prefix": "/api/v1"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
