#!/usr/bin/env python3
"""
Krishi Drishti API Server

Endpoints:
- /api/iot/telemetry        : POST ingest / GET history
- /api/iot/status           : GET fleet real-time status
- /api/cron/close-sessions  : GET|POST stale-session sweep
- /api/leaderboard          : GET Panchayat leaderboard
- /api/panchayats/{id}/score: POST score recompute
- /health                   : GET liveness and database check
- /docs                     : Swagger UI (auto-generated)
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from config import get_settings
from core.exceptions import InvalidInput, KrishiBaseException, PersistenceFailure
from database import check_database_health, init_database, shutdown_database
from governance_api import governance_router
from iot_api import iot_router
from logger import RequestContextMiddleware, configure_logging, get_logger
from schemas.response import ErrorResponse, ORJSONResponse

settings = get_settings()
configure_logging(
    environment=settings.environment,
    log_level=settings.log.level,
    json_format=settings.log.format == "json",
)
logger = get_logger("krishi.api")


# =============================================================================
# LIFESPAN (Startup/Shutdown)
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup, cleanup on shutdown."""
    logger.info(
        "API server starting",
        environment=settings.environment,
        version=settings.app_version,
        database=settings.database.dsn_safe,
    )
    await init_database()
    yield
    await shutdown_database()
    logger.info("API server stopped")


app = FastAPI(
    title=settings.app_name,
    description="IoT telemetry, utilization sessions and Panchayat leaderboards",
    version=settings.app_version,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
def _error_response(exc: KrishiBaseException) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_exception(exc),
    )


@app.exception_handler(KrishiBaseException)
async def domain_exception_handler(request: Request, exc: KrishiBaseException):
    """Map domain exceptions to their HTTP status."""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.__class__.__name__, details=exc.details)
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are a 400, not FastAPI's 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    invalid = InvalidInput(field, first.get("msg", "invalid request"))
    invalid.details["errors"] = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in errors
    ]
    return _error_response(invalid)


@app.exception_handler(SQLAlchemyError)
async def persistence_exception_handler(request: Request, exc: SQLAlchemyError):
    """Storage failures surface as a generic 500."""
    logger.error(
        "Persistence failure",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return _error_response(PersistenceFailure(request.url.path))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions - pass through with proper status."""
    return ORJSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": "HTTPException", "message": str(exc.detail), "details": {}},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler - catches all unhandled exceptions.
    Logs the full trace but returns a clean error to the caller.
    """
    error_id = str(uuid.uuid4())
    logger.exception(
        "Unhandled exception",
        reference_id=error_id,
        path=request.url.path,
        method=request.method,
    )
    return ORJSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "InternalServerError",
            "message": f"An internal error occurred. Reference ID: {error_id}",
            "details": {"reference_id": error_id},
        },
    )


app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(iot_router)
app.include_router(governance_router)


@app.get("/health", tags=["System"])
async def health_check():
    """
    Public health check endpoint for load balancers.
    """
    health = await check_database_health()
    status_code = 200 if health["status"] == "healthy" else 503
    return ORJSONResponse(
        content={"app": settings.app_name, "version": settings.app_version, "database": health},
        status_code=status_code,
    )


# =============================================================================
# MAIN
# =============================================================================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api_server:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level=settings.log.level.lower(),
    )
