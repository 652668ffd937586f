from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import settings
from app.core.database import Database
from app.core.errors import register_error_handlers, ERROR_MESSAGES
from app.core.logging_config import (
    setup_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from app.api.endpoints import articles, auth, editions, users
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging

# Configure structured JSON logging
setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000"

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the content store handle on startup and close it on shutdown."""
    logger.info("Starting Envisage digest API...")

    database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    database.create_all()
    app.state.database = database
    logger.info("Database tables ready")

    yield

    logger.info("Shutting down Envisage digest API...")
    database.dispose()


def include_routers(app: FastAPI) -> None:
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(editions.router, prefix="/api/editions", tags=["editions"])
    app.include_router(articles.router, prefix="/api/articles", tags=["articles"])


app = FastAPI(
    title="Envisage - Reading Digest API",
    description="Twice-daily news editions with per-user reading engagement",
    version="1.0.0",
    lifespan=lifespan,
)

# Add correlation ID middleware (first, so all logs have correlation IDs)
app.add_middleware(CorrelationIdMiddleware)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add security headers middleware
app.add_middleware(SecurityHeadersMiddleware)

register_error_handlers(app)

log_security_event(
    event_type="app.startup",
    message=f"Envisage digest API starting (production={settings.is_production})",
    event_category="system",
    production=settings.is_production,
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

include_routers(app)


@app.get("/")
def root():
    return {
        "name": "Envisage",
        "version": "1.0.0",
        "description": "Reading digest API",
    }


@app.get("/health")
def health_check(request: Request):
    """Liveness plus a round trip to the content store."""
    try:
        request.app.state.database.ping()
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "detail": ERROR_MESSAGES["store_unavailable"]},
        )
    return {"status": "healthy"}
