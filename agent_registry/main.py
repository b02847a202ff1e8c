from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from agent_registry.config import Settings, get_settings
from agent_registry.database import Database
from agent_registry.logging_config import configure_logging
from agent_registry.middleware.origin import OriginAllowListMiddleware
from agent_registry.storage.blob import BlobStore
from agent_registry.core.exceptions import AppError, ParseError, ValidationError, InternalError
from agent_registry.api import agents, users
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    settings: Settings = app.state.settings
    configure_logging(settings.LOG_LEVEL)

    # Startup: neither failure is fatal, requests will fail individually instead
    try:
        await app.state.database.init_db()
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection error: {e}")

    await app.state.blob_store.ensure_container()

    yield

    # Shutdown
    await app.state.blob_store.close()
    await app.state.database.dispose()


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report the first invalid body field by name"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        error = ParseError("Error parsing request body")
    else:
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        field = loc[-1] if loc else "body"
        if first.get("type") == "missing":
            error = ValidationError(field)
        else:
            error = ValidationError(field, f"Invalid field: {field}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        content = {"message": "Route not found", "error": "RouteNotFound"}
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        content = {"message": "Method not allowed", "error": "MethodNotAllowed"}
    else:
        content = {"message": str(exc.detail), "error": "HTTPError"}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Centralized fallback: log full detail, return a generic 500"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(
    settings: Settings = None,
    database: Database = None,
    blob_store: BlobStore = None,
) -> FastAPI:
    """Build the application with its database and blob store injected"""
    settings = settings or get_settings()

    app = FastAPI(
        title="Agent Registry API",
        description="CRUD for users and agents with document uploads to Azure Blob Storage",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = database or Database(
        settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development"
    )
    app.state.blob_store = blob_store or BlobStore(
        settings.AZURE_STORAGE_CONNECTION_STRING, settings.AZURE_STORAGE_CONTAINER
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    # Added last so it wraps CORS and also rejects preflights from unknown origins
    app.add_middleware(OriginAllowListMiddleware, allowed_origins=settings.cors_origins)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT
        }

    app.include_router(users.router, prefix="/api/addUsers", tags=["Users"])
    app.include_router(agents.router, prefix="/api/agents", tags=["Agents"])

    return app


app = create_app()
