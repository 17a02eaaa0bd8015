"""
FastAPI Application Entry Point.

This is the main application file for the MHR Health Care CMS backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.api.v1.endpoints import dashboard
from backend.app.db.session import engine, Base
from backend.app.core.events import event_bus
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import close_redis, ping_redis
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from backend.app.services.cache import cache_store
from backend.app.services.cache_invalidation import CacheInvalidator

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.invitation import Invitation
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.models.blog import Blog
from backend.app.models.announcement import Announcement
from backend.app.models.hero_background import HeroBackground
from backend.app.models.newsletter_subscription import NewsletterSubscription
from backend.app.models.customer_registration import CustomerRegistration

configure_logging()

# Catalog writes publish events; the invalidator evicts stale cache entries
cache_invalidator = CacheInvalidator(cache_store)
cache_invalidator.register(event_bus)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup; closes the engine and the
    rate-limit Redis connection on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Content and catalog API for a medical supplies distributor",
    lifespan=lifespan,
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Correlation IDs, request logging and the final 500 boundary
app.add_middleware(ObservabilityMiddleware)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")

# Dashboard lives outside the versioned API
app.include_router(dashboard.router)

# Uploaded images
app.mount("/storage", StaticFiles(directory=settings.public_storage_path, check_dir=False), name="storage")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": f"Welcome to the {settings.app_name} API",
        "docs": "/docs",
        "health": "/health",
    }
