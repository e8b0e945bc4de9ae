import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from account_ledger.core.config import Settings, get_settings
from account_ledger.core.database import Database
from account_ledger.core.errors import (
    AccountLedgerError,
    ConflictError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InsufficientCoinsError,
    InvalidInputError,
    NotFoundError,
    StorageTimeoutError,
)
from account_ledger.core.limiter import limiter
from account_ledger.core.log_config import configure_logging
from account_ledger.routes import accounts, auth, leaderboard, matches
from account_ledger.services.ledger import RatingLedger

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    DuplicateUsernameError: status.HTTP_409_CONFLICT,
    DuplicateEmailError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidInputError: 422,
    InsufficientCoinsError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageTimeoutError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(exc: AccountLedgerError) -> int:
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(
    settings: Optional[Settings] = None, database: Optional[Database] = None
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting Account Ledger API")
        db_handle = app.state.database.open()
        if settings.is_dev_like:
            # NOTE: create_all is acceptable for local and test workflows.
            db_handle.create_schema()
        else:
            logger.info(
                "Skipping schema auto-creation in non-dev environment; run migrations instead"
            )
        yield
        # Shutdown
        db_handle.close()
        logger.info("Shutting down Account Ledger API")

    app = FastAPI(
        title="Account Ledger API",
        description="User accounts, credentials, coin balances and match ratings",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(
        settings.DATABASE_URL, settings.DB_LOCK_TIMEOUT_SECONDS
    )
    app.state.ledger = RatingLedger(settings)

    # Rate limiting — per-IP throttle on registration
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware — origins driven by CORS_ORIGINS env var
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "request_path": str(request.url.path),
                "response_time": f"{process_time:.3f}s",
            },
        )
        return response

    # Include routers
    app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(matches.router, prefix="/matches", tags=["Matches"])
    app.include_router(leaderboard.router, prefix="/leaderboard", tags=["Leaderboard"])

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "account-ledger-api",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/ready")
    def readiness_check(request: Request):
        try:
            request.app.state.database.ping()
            return {
                "status": "ready",
                "service": "account-ledger-api",
                "environment": settings.ENVIRONMENT,
            }
        except Exception:
            logger.warning("Readiness check failed", exc_info=True)
            return JSONResponse(status_code=503, content={"status": "not_ready"})

    @app.exception_handler(AccountLedgerError)
    async def account_ledger_error_handler(request: Request, exc: AccountLedgerError):
        code = _status_for(exc)
        logger.info(
            exc.message,
            extra={"error_code": exc.code, "request_path": str(request.url.path)},
        )
        headers = {"Retry-After": "1"} if exc.retryable else None
        return JSONResponse(
            status_code=code,
            content={"detail": exc.message, "error": exc.code},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()
