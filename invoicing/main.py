"""
FastAPI application main module.
Middleware, domain error mapping, background job worker and health checks.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy import text
import time
import uuid
import os
from contextlib import asynccontextmanager
from invoicing import database
from invoicing.api.v1 import api_router
from invoicing.config import QUEUE_SETTINGS
from invoicing.jobs.worker import JobWorker, LAST_EXCEPTIONS, create_queue
from invoicing.utils import setup_logging, get_logger
from invoicing.utils.errors import EntityForbidden, EntityNotFound, ValidationFailed

# Setup logging before creating the app
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE", "logs/invoicing.log"),
    enable_console=True
)

logger = get_logger(__name__)

SERVICE_NAME = "invoicing-api"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Creates tables, then starts the job queue and its worker.
    """
    logger.info("Application startup initiated")
    worker: JobWorker | None = None
    try:
        database.Base.metadata.create_all(bind=database.engine)
        logger.info("Database tables ready")

        queue = create_queue()
        app.state.job_queue = queue
        worker = JobWorker(queue)
        worker.start()
        logger.info("Application startup completed successfully")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown initiated")
        if worker:
            worker.stop()
        queue = getattr(app.state, "job_queue", None)
        if queue is not None:
            queue.shutdown()
        logger.info("Application shutdown completed")


app = FastAPI(
    title="Invoicing API",
    description="""
    Payments, documents and invitation tracking for the invoicing platform.

    ## Authentication
    Use Bearer token authentication with your API key:
    ```
    Authorization: Bearer <api_key>
    ```

    ## Identifiers
    Every id in paths, payloads and responses is an opaque hashed token.
    """,
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def add_request_context_and_logging(request: Request, call_next):
    """Attach a request id, time the request and log start/end."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    request.state.start_time = time.time()

    logger.info(
        "Request started",
        method=request.method,
        url=str(request.url),
        user_agent=request.headers.get("User-Agent"),
        remote_addr=request.client.host if request.client else "unknown",
        request_id=request_id
    )

    response = await call_next(request)

    process_time_ms = round((time.time() - request.state.start_time) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time_ms)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    logger.info(
        "Request completed",
        method=request.method,
        url=str(request.url),
        status_code=response.status_code,
        process_time_ms=process_time_ms,
        request_id=request_id
    )
    return response


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic error contexts may hold exception instances
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = _request_id(request)
    logger.warning(
        "Request validation failed",
        errors=exc.errors(),
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
            "request_id": request_id
        }
    )


@app.exception_handler(ValidationFailed)
async def domain_validation_handler(request: Request, exc: ValidationFailed):
    request_id = _request_id(request)
    logger.warning("Business validation failed", errors=exc.errors, request_id=request_id)
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": exc.message,
            "errors": exc.errors,
            "request_id": request_id
        }
    )


@app.exception_handler(EntityNotFound)
async def not_found_handler(request: Request, exc: EntityNotFound):
    request_id = _request_id(request)
    logger.info("Entity not found", entity=exc.entity_name, identifier=str(exc.identifier), request_id=request_id)
    return JSONResponse(
        status_code=404,
        content={
            "success": False,
            "message": f"{exc.entity_name.capitalize()} not found",
            "request_id": request_id
        }
    )


@app.exception_handler(EntityForbidden)
async def forbidden_handler(request: Request, exc: EntityForbidden):
    request_id = _request_id(request)
    return JSONResponse(
        status_code=403,
        content={
            "success": False,
            "message": f"Not allowed to {exc.ability} this {exc.entity_name}",
            "request_id": request_id
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    request_id = _request_id(request)
    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        url=str(request.url),
        method=request.method
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail,
            "request_id": request_id
        },
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=request_id,
        url=str(request.url),
        method=request.method,
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "request_id": request_id
        }
    )


@app.get("/health", tags=["health"], summary="Basic health check")
async def health_check():
    """Basic health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": time.time(),
        "queue_backend": "redis" if QUEUE_SETTINGS.get("use_redis", False) else "memory",
    }


@app.get("/health/detailed", tags=["health"], summary="Detailed health check")
async def detailed_health_check():
    """Database connectivity, queue state and recent job failures."""
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": time.time(),
        "checks": {}
    }

    db = database.SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"
    finally:
        db.close()

    queue = getattr(app.state, "job_queue", None)
    if queue is None:
        health_status["checks"]["queue"] = "not initialized"
        health_status["status"] = "degraded"
    else:
        snap = queue.snapshot()
        health_status["checks"]["queue"] = {
            k: v for k, v in snap.items() if k in {"depth", "ready", "scheduled", "redis_active"}
        }
        if snap.get("redis_active") is False and QUEUE_SETTINGS.get("use_redis", False):
            health_status["status"] = "degraded"

    health_status["checks"]["recent_job_failures"] = len(LAST_EXCEPTIONS)
    return health_status


@app.get("/", tags=["root"])
async def root():
    """API root endpoint with basic information."""
    return {
        "message": "Invoicing API",
        "version": VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "api_base": "/api/v1"
    }


app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")
    uvicorn.run(
        "invoicing.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["invoicing"],
        log_level="info",
        access_log=True
    )
