"""Mastodon Analytics - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from database import engine
from middleware.rate_limit import limiter, rate_limit_exceeded_handler
from routers import stats_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - verify the database is reachable, dispose the pool on shutdown."""
    try:
        async with engine.connect():
            logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        # Stats endpoints answer 503 until the database comes back
        logger.warning(f"Database not reachable at startup: {e}")

    yield

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Charts, KPIs and top toots for connected Mastodon accounts",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(stats_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "mastodon-analytics"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "docs": "/docs",
    }
