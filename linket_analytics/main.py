"""
FastAPI application entry point for the Linket Analytics API.

Configures logging and CORS, manages the asyncpg pool lifecycle, and mounts
the analytics router.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linket_analytics.api import api_router
from linket_analytics.core.config import get_settings
from linket_analytics.core.database import close_db, init_db, is_database_configured

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown.

    On startup the pool is created when a database URL is configured. Without
    one the API still serves requests, and every report comes back with
    meta.available = false.
    """
    logger.info("Linket Analytics API starting")
    if is_database_configured():
        try:
            await init_db()
            logger.info("Database connection pool initialized")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
    else:
        logger.warning("DATABASE_URL not set; analytics will be served in degraded mode")

    yield

    logger.info("Linket Analytics API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


app = FastAPI(
    title="Linket Analytics API",
    version="1.0.0",
    description=(
        "Per-tenant analytics rollups for Linket: scan and lead timelines, "
        "profile and link leaderboards, acquisition funnel and onboarding progress."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancer probes."""
    return {"status": "healthy", "store_configured": settings.store_configured}


@app.get("/")
async def root():
    return {
        "name": "Linket Analytics API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "linket_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
