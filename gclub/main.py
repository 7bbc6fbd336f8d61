"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from gclub.core.config import settings
from gclub.core.middleware import get_request_id, setup_middleware
from gclub.core.rate_limiter import limiter
from gclub.core.exceptions import GClubError

from gclub.api.profile import router as profile_router
from gclub.api.game_posts import router as game_posts_router
from gclub.api.waiting import router as waiting_router
from gclub.api.comments import router as comments_router
from gclub.api.roles import router as roles_router
from gclub.api.channels import router as channels_router
from gclub.api.notifications import router as notifications_router
from gclub.api.push import router as push_router
from gclub.api.notices import router as notices_router
from gclub.api.admin import router as admin_router
from gclub.api.cron import router as cron_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("gclub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("🚀 Starting G-Club API")

    # Redis check; the role cache degrades to database reads without it
    from gclub.services.cache_service import cache_service
    if cache_service.health_check():
        logger.info("✅ Redis connected")
    else:
        logger.warning("⚠️  Redis not available, role cache disabled")

    yield

    logger.info("🔻 Shutting down G-Club API")


app = FastAPI(
    title="G-Club API",
    description="Game meetup community: recruitment posts, waiting lists, roles",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(GClubError)
async def gclub_exception_handler(request: Request, exc: GClubError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("[%s] Database error: %s", get_request_id(request), exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Register routers
app.include_router(profile_router, prefix="/api")
app.include_router(game_posts_router, prefix="/api")
app.include_router(waiting_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(channels_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(push_router, prefix="/api")
app.include_router(notices_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(cron_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
