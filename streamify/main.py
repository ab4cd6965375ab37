import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from streamify.config.logging_config import configure_logging
from streamify.config.settings import settings
from streamify.database.client import close_db, init_db
from streamify.database.credential_store import StoreError
from streamify.features.auth.passwords import HashingError
from streamify.features.auth.router import router as auth_router
from streamify.features.auth.tokens import EntropyUnavailableError
from streamify.features.user.router import router as user_router
from streamify.shared.rate_limit import limiter, rate_limit_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Handle startup and shutdown events."""
    # Startup
    configure_logging(settings.log_level, settings.log_format)
    await init_db()
    yield
    # Shutdown
    await close_db()


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log store, hashing and entropy failures and hide their details from the caller."""
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

for error_type in (StoreError, HashingError, EntropyUnavailableError):
    app.add_exception_handler(error_type, internal_error_handler)

# Router Registration
routers: list[APIRouter] = [
    auth_router,
    user_router,
]

for router in routers:
    app.include_router(router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": "Streamify API", "status": "running"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
