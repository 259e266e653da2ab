"""FastAPI application creation and configuration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.exceptions import InternalError, InvalidInputError, NotFoundError
from .database.session import init_db, init_sample_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and seed sample content when configured."""
    settings = get_settings()
    init_db()
    if settings.SEED_SAMPLE_DATA:
        init_sample_data()
    logger.info(f"{settings.APP_NAME} started")
    yield


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _error(404, "Not found", str(exc))

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError):
        return _error(400, "Invalid input", str(exc))

    @app.exception_handler(InternalError)
    async def _internal(request: Request, exc: InternalError):
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return _error(500, "Internal server error", "Something went wrong")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan
    )
    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {"status": "ok", "message": f"{settings.APP_NAME} API running"}

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    # Include routers
    from .routes import admin, interactions, interventions, users
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(interventions.router, prefix="/api", tags=["interventions"])
    app.include_router(interactions.router, prefix="/api", tags=["interactions"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])

    return app
