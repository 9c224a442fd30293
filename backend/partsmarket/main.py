"""PartsMarket Backend -- FastAPI Application Entry Point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from partsmarket import __version__
from partsmarket.api.v1.router import api_v1_router
from partsmarket.config import settings
from partsmarket.core.exceptions import InvalidArgumentError, PartsMarketError, StoreFailureError
from partsmarket.core.logging import configure_logging
from partsmarket.db.session import engine
from partsmarket.models import Base
from partsmarket.schemas.common import ErrorResponse

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("starting_api_server", environment=settings.ENVIRONMENT, debug=settings.DEBUG)

    # Create tables on startup (safe for fresh deployments)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_ready")
    except SQLAlchemyError:
        logger.error("database_init_failed", exc_info=True)

    yield

    logger.info("shutting_down_api_server")
    await engine.dispose()


def _error_response(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error, exclude_none=True),
    )


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def partsmarket_error_handler(request: Request, exc: PartsMarketError) -> JSONResponse:
    errors = exc.errors if isinstance(exc, InvalidArgumentError) and exc.errors else None
    return _error_response(
        exc.status_code,
        ErrorResponse(message=exc.message, error=exc.error, errors=errors),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = {}
    for err in exc.errors():
        errors.setdefault(_field_name(err.get("loc", ())), err.get("msg", "Invalid value"))
    return _error_response(400, ErrorResponse(message="Validation failed", errors=errors))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error_response(exc.status_code, ErrorResponse(message=str(exc.detail)))
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "store_failure",
        method=request.method,
        path=request.url.path,
        error_type=exc.__class__.__name__,
        exc_info=exc,
    )
    failure = StoreFailureError()
    return _error_response(failure.status_code, ErrorResponse(message=failure.message, error=failure.error))


def create_app() -> FastAPI:
    app = FastAPI(
        title="PartsMarket API",
        description="Auto-parts marketplace catalog: categories, listings and moderation",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            settings.FRONTEND_URL,
            "http://localhost:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PartsMarketError, partsmarket_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "PartsMarket API",
            "version": __version__,
            "docs": "/docs" if settings.DEBUG else None,
            "health": "/api/v1/health",
        }

    return app


app = create_app()
