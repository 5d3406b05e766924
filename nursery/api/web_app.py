# Standard library
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import uuid

# Third party
from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

# Local imports
from nursery.core.config import Settings, settings as default_settings
from nursery.core.logging import get_logger
from nursery.core.auth import admin_api_key_gate, ADMIN_PREFIX
from nursery.core.errors import NurseryAPIError
from nursery.db.base import Database
from nursery.importers.base import ImportService
from nursery.importers.factory import create_import_service, create_job_runner
from nursery.importers.runner import JobRunner
import nursery.api as api


logger = get_logger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events"""
    logger.info("Nursery API starting up...")

    try:
        app.state.database.ping()
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    yield

    logger.info("Nursery API shutting down...")
    app.state.job_runner.shutdown()
    app.state.database.dispose()


def _clean_errors(errors) -> list:
    """Validation errors without the non-serializable ctx objects"""
    return [
        {"type": error.get("type"), "loc": list(error.get("loc", ())), "msg": error.get("msg")}
        for error in errors
    ]


def create_app(
    settings: Settings = None,
    database: Database = None,
    import_service: ImportService = None,
    job_runner: JobRunner = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators are built here once (or injected by tests) and stored on
    app.state; request handlers reach them through dependencies.
    """
    settings = settings or default_settings
    database = database or Database.from_settings(settings)
    import_service = import_service or create_import_service(settings, database)
    job_runner = job_runner or create_job_runner(settings, database, import_service)

    app = FastAPI(
        title="Nursery API",
        description="Catalog, category and import-job API for the plant nursery storefront.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        default_response_class=JSONResponse,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.import_service = import_service
    app.state.job_runner = job_runner

    # Mount Public APIs
    for name, router in api.public_routers:
        app.include_router(router, prefix="/api", tags=[name])

    # Mount Admin APIs with authentication
    for name, router in api.admin_routers:
        app.include_router(
            router,
            prefix=ADMIN_PREFIX,
            tags=[f"admin-{name}"],
            dependencies=[Depends(admin_api_key_gate)],
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        headers = dict(request.headers)
        for header in SENSITIVE_HEADERS:
            if header in headers:
                headers[header] = "[REDACTED]"
        logger.info(f"[{request_id}] {request.method} {request.url}")
        if settings.DEBUG:
            logger.info(f"[{request_id}] Headers: {headers}")

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"[{request_id}] Request failed after {process_time:.4f}s: {str(e)}", exc_info=True)
            raise

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        logger.info(f"[{request_id}] {response.status_code} in {process_time:.4f}s")
        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers and monitoring"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/openapi.yaml")
    async def get_openapi_yaml():
        """Serve the OpenAPI specification in YAML format"""
        from yaml import dump

        yaml_content = dump(app.openapi(), default_flow_style=False, sort_keys=False)
        return Response(content=yaml_content, media_type="application/x-yaml")

    @app.exception_handler(NurseryAPIError)
    async def nursery_error_handler(request: Request, exc: NurseryAPIError):
        if exc.status_code >= 500:
            logger.error(f"{exc.error}: {exc.message or ''}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # ValueError handler (before global handler)
    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.error(f"ValueError: {str(exc)}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = _clean_errors(exc.errors())
        logger.error(f"Validation error on {request.url.path}: {errors}")
        return JSONResponse(status_code=400, content={"error": "Validation error", "details": errors})

    @app.exception_handler(ValidationError)
    async def pydantic_validation_exception_handler(request: Request, exc: ValidationError):
        errors = _clean_errors(exc.errors())
        logger.error(f"Pydantic validation error on {request.url.path}: {errors}")
        return JSONResponse(status_code=400, content={"error": "Validation error", "details": errors})

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app
