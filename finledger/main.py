"""
Main FastAPI application for FinLedger

This module builds the FastAPI application: configures logging and CORS,
wires the database and the long-lived services, registers routers and
maps core errors to HTTP responses.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Type

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from finledger import __version__
from finledger.api import auth
from finledger.api.endpoints import advice, entries, users
from finledger.core.config import Settings, get_settings, get_cors_origins
from finledger.core.exceptions import (
    DuplicateUsername,
    FinLedgerError,
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    NotFound,
    StorageFailure,
    Unauthenticated,
    UpstreamFailure,
)
from finledger.db.session import create_db_engine, create_session_factory, init_db
from finledger.services import AdviceClient, AuthGate, TokenService

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: Dict[Type[FinLedgerError], int] = {
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    DuplicateUsername: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    StorageFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UpstreamFailure: status.HTTP_502_BAD_GATEWAY,
}


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 50)
    logger.info(f"Starting {settings.project_name}")
    logger.info(f"Environment: {settings.env}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API prefix: {settings.api_prefix}")
    logger.info(f"Token lifetime: {settings.access_token_expire_minutes} minutes")
    logger.info(f"CORS origins: {get_cors_origins(settings)}")
    logger.info("=" * 50)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.project_name}...")
    app.state.engine.dispose()


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory for creating FastAPI instance

    Every collaborator is built here from ``settings`` and attached to
    ``app.state``; tests pass their own settings.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    if settings.uses_default_secret:
        if settings.env == "prod":
            raise RuntimeError("JWT_SECRET_KEY must be set in production")
        logger.warning("JWT_SECRET_KEY is not set, using the insecure development default")

    app = FastAPI(
        title=settings.project_name,
        description="Personal finance tracking backend: incomes, expenses and balances",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url=f"{settings.api_prefix}/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Persistence
    engine = create_db_engine(settings.database_url, echo=settings.debug)
    init_db(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    # Long-lived services
    token_service = TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        lifetime=timedelta(minutes=settings.access_token_expire_minutes),
    )
    app.state.token_service = token_service
    app.state.auth_gate = AuthGate(token_service)
    app.state.advice_client = AdviceClient(
        base_url=settings.advice_api_url,
        api_key=settings.advice_api_key,
        model=settings.advice_model,
        timeout=settings.advice_timeout,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Authorization", "Content-Type", "X-CSRF-Token"],
        max_age=300,
    )

    register_exception_handlers(app)
    register_routers(app, settings)
    register_base_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Translate core errors into HTTP responses"""

    @app.exception_handler(FinLedgerError)
    async def finledger_error_handler(request: Request, exc: FinLedgerError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        for cls in type(exc).__mro__:
            if cls in ERROR_STATUS_CODES:
                status_code = ERROR_STATUS_CODES[cls]
                break

        headers = None
        if isinstance(exc, (Unauthenticated, InvalidCredentials)):
            headers = {"WWW-Authenticate": "Bearer"}

        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid input on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )


def register_routers(app: FastAPI, settings: Settings) -> None:
    """Register API routers"""
    prefix = settings.api_prefix

    app.include_router(auth.router, prefix=prefix)
    app.include_router(entries.income_router, prefix=f"{prefix}/income", tags=["Incomes"])
    app.include_router(entries.expense_router, prefix=f"{prefix}/expense", tags=["Expenses"])
    app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
    app.include_router(advice.router, prefix=f"{prefix}/ai-advice", tags=["Advice"])
    logger.debug("Routers registered")


def register_base_routes(app: FastAPI) -> None:
    """Register base application routes"""

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        settings: Settings = app.state.settings
        return {
            "message": f"{settings.project_name} API",
            "version": __version__,
            "status": "running",
            "docs_url": "/docs" if settings.debug else "disabled",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        }

    @app.get("/config")
    async def get_config():
        """
        Get application configuration (development only)

        In production, this endpoint returns 404
        """
        settings: Settings = app.state.settings
        if not settings.debug:
            raise HTTPException(
                status_code=404,
                detail="Endpoint is only available in development mode"
            )

        # Return only safe configuration (no secrets)
        return {
            "project_name": settings.project_name,
            "env": settings.env,
            "debug": settings.debug,
            "api_prefix": settings.api_prefix,
            "jwt_algorithm": settings.jwt_algorithm,
            "access_token_expire_minutes": settings.access_token_expire_minutes,
            "advice_model": settings.advice_model,
            "log_level": settings.log_level,
            "cors_origins": get_cors_origins(settings),
        }


if __name__ == "__main__":
    """
    Development server entry point

    For production use:
    gunicorn -w 4 -k uvicorn.workers.UvicornWorker 'finledger.main:create_application()'
    """
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "finledger.main:create_application",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=_settings.debug,
        log_level=_settings.log_level.lower()
    )
