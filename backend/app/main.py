"""
Liftx - FastAPI Application

Main entry point for the backend API.
Provides endpoints for posting, platform connections, subscriptions,
uploads and metrics.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import InterfaceError, OperationalError

from app.config.settings import settings
from app.infrastructure.exceptions import (
    BillingError,
    DependencyUnavailable,
    EntitlementError,
    InvalidStateTransition,
    LiftxError,
    NotFoundError,
    PostNotFoundError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(f"Liftx Backend starting in {settings.environment} mode...")

    if settings.database_url:
        from app.infrastructure.db.database import init_db
        try:
            await init_db()
            logger.info("SQLModel database connection pool initialized")
        except (OperationalError, InterfaceError, OSError) as e:
            # Requests fail with 503 until the database is reachable
            logger.warning(f"Database not reachable at startup: {e}")
    else:
        logger.warning("DATABASE_URL is not set; database-backed endpoints will fail")

    yield

    # Shutdown
    if settings.database_url:
        from app.infrastructure.db.database import close_db
        await close_db()
        logger.info("SQLModel database connection pool closed")

    logger.info("Liftx Backend shutting down...")


app = FastAPI(
    title="Liftx",
    description="Multi-platform social posting with tiered subscriptions",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(EntitlementError)
async def entitlement_error_handler(request: Request, exc: EntitlementError):
    """Handle tier limit and permission violations."""
    logger.info(f"Entitlement rejected on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=403,
        content=exc.to_dict(),
    )


@app.exception_handler(PostNotFoundError)
async def post_not_found_handler(request: Request, exc: PostNotFoundError):
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(InvalidStateTransition)
async def invalid_transition_handler(request: Request, exc: InvalidStateTransition):
    """Handle illegal post state changes."""
    return JSONResponse(
        status_code=409,
        content=exc.to_dict(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(DependencyUnavailable)
async def dependency_unavailable_handler(request: Request, exc: DependencyUnavailable):
    """Handle store outages; nothing was committed."""
    return JSONResponse(
        status_code=503,
        content=exc.to_dict(),
    )


@app.exception_handler(OperationalError)
async def operational_error_handler(request: Request, exc: OperationalError):
    """Store outages raised outside a repository (e.g. at commit)."""
    logger.error(f"Database unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content=DependencyUnavailable("Database is unavailable").to_dict(),
    )


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError):
    """Handle payment provider failures."""
    return JSONResponse(
        status_code=502,
        content=exc.to_dict(),
    )


@app.exception_handler(LiftxError)
async def general_error_handler(request: Request, exc: LiftxError):
    """Handle all other application errors."""
    logger.error(f"Unhandled application error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "liftx"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Liftx API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from app.api.routes import (  # noqa: E402
    auth,
    metrics,
    platforms,
    posts,
    subscriptions,
    uploads,
    webhooks,
)

app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(posts.router, prefix="/api", tags=["Posts"])
app.include_router(platforms.router, prefix="/api", tags=["Platforms"])
app.include_router(subscriptions.router, prefix="/api", tags=["Subscriptions"])
app.include_router(webhooks.router, prefix="/api", tags=["Webhooks"])
app.include_router(uploads.router, prefix="/api", tags=["Uploads"])
app.include_router(metrics.router, prefix="/api", tags=["Metrics"])

# Uploaded media, served from MEDIA_ROOT at the path of MEDIA_BASE_URL
app.mount("/media", StaticFiles(directory=settings.media_root, check_dir=False), name="media")
