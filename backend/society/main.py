"""
Society Management API

Residents, flats and maintenance billing for one housing society.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded

from society import __version__
from society.core.config import settings
from society.core.database import init_db, close_db
from society.core.exceptions import SocietyError, error_response
from society.core.logging_config import logger
from society.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from society.core.rate_limiter import limiter, rate_limit_exceeded_handler
from society.api.v1.router import api_router
from society.services.notifier import notifier
import society.models  # noqa: F401 - register models on the metadata


PLACEHOLDER_SECRETS = {"", "CHANGE_ME", "changeme", "secret"}


def validate_critical_config() -> None:
    """Refuse to start with a missing database URL or placeholder secrets"""
    errors = []
    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")
    for name in ("SECRET_KEY", "JWT_SECRET_KEY"):
        if getattr(settings, name) in PLACEHOLDER_SECRETS:
            errors.append(f"{name} is not set or uses a placeholder value")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    if not settings.email_enabled:
        logger.warning("[Startup] SMTP credentials not set - verification and payment emails are disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} {__version__} ({settings.ENVIRONMENT})")
    validate_critical_config()

    await init_db()
    logger.info("[Startup] Database ready")

    yield

    # Let in-flight emails finish before the loop goes away
    if notifier.pending:
        logger.info(f"[Shutdown] Waiting for {notifier.pending} outstanding notifications")
    await notifier.drain()
    await close_db()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Residential society management: residents, flats and maintenance billing",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Last added runs first: CORS -> security headers -> request logging
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


@app.exception_handler(SocietyError)
async def society_error_handler(request: Request, exc: SocietyError):
    """Domain errors carry their own HTTP status"""
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}",
            extra={"event_type": "domain_error", "error_code": exc.code},
        )
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": str(exc) if settings.DEBUG else "An error occurred",
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": {}},
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": __version__,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/", tags=["Root"])
async def root():
    return {"message": f"{settings.APP_NAME} API", "version": __version__, "docs": "/docs"}


app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "society.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.is_dev_mode(),
    )
