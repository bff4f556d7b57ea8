"""
FastAPI application entry point for the Search Interplay API.

Configures logging and CORS, builds the pipeline context on startup and
registers the reports router.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.reports import router as reports_router
from backend.core.config import get_settings
from backend.core.context import build_pipeline_context
from backend.core.database import close_db, init_db

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Initialize database connection pool
        - Build the pipeline context (AI gateway, providers, stores)

    On shutdown:
        - Close database connection pool
    """
    # Startup
    logger.info("Search Interplay API starting")
    app.state.pipeline = None
    try:
        pool = await init_db()
        logger.info("Database connection pool initialized")
        app.state.pipeline = build_pipeline_context(get_settings(), pool)
        logger.info("Pipeline context ready")
    except Exception as e:
        logger.error(f"Failed to initialize pipeline: {e}")
        # Continue startup; the context is built on first request instead

    yield

    # Shutdown
    logger.info("Search Interplay API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


# Create FastAPI application
app = FastAPI(
    title="Search Interplay API",
    version="1.0.0",
    description=(
        "Multi-agent search performance analysis. Generates interplay reports "
        "with cross-channel paid and organic recommendations."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(reports_router, prefix="/reports", tags=["reports"])


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Search Interplay API",
        "version": "1.0.0",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
