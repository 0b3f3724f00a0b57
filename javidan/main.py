import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from javidan.config import Settings, settings as default_settings
from javidan.database import Database
from javidan.db_init import init_database
from javidan.errors import ArchiveError
from javidan.models import HealthResponse
from javidan.routers import admin, field_updates, search, social, subjects, submissions, uploads
from javidan.services.storage import ObjectStorage

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message}
    )


def create_app(app_settings: Optional[Settings] = None, storage: Optional[ObjectStorage] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to environment settings)
        storage: Storage adapter to use instead of one built from settings
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create database and storage clients on startup"""
        logger.info(f"Initializing database at {app_settings.database_path} ({app_settings.environment})")
        database = Database(app_settings.database_path)
        with database.session() as conn:
            init_database(conn)

        app.state.settings = app_settings
        app.state.database = database
        app.state.storage = storage or ObjectStorage.from_settings(app_settings)
        logger.info("Database initialized")
        yield
        logger.info("Shutting down...")
        app.state.storage = None
        app.state.database = None

    app = FastAPI(
        title="Javidan Archive",
        description="Public submission archive for victims, security forces, agents, videos and evidence",
        version=VERSION,
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(submissions.router)
    app.include_router(subjects.router)
    app.include_router(search.router)
    app.include_router(field_updates.router)
    app.include_router(uploads.router)
    app.include_router(social.router)
    app.include_router(admin.router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(
            status="healthy",
            version=VERSION,
            database="connected"
        )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "Javidan Archive API",
            "version": VERSION,
            "docs": "/docs"
        }

    # Error handlers
    @app.exception_handler(ArchiveError)
    async def archive_error_handler(request, exc: ArchiveError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Not found"
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err["loc"] if part != "body") for err in exc.errors()]
        return error_response(400, f"Invalid request: {', '.join(f for f in fields if f) or 'body'}")

    @app.exception_handler(Exception)
    async def internal_error_handler(request, exc: Exception):
        logger.exception(f"Internal server error: {exc}")
        return error_response(500, "Internal server error")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "javidan.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=True
    )
