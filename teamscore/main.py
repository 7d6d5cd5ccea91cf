"""
FastAPI application entry point for the Team Scorecard API.

This module wires the service layer together: it opens the PostgreSQL pool,
builds the record store used by every route, configures CORS and registers
the API routers.

Route handlers receive the store through dependency injection
(``teamscore.core.dependencies.StoreDep``), so tests can replace it with an
in-memory store.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamscore import __version__
from teamscore.api import api_router
from teamscore.core.config import get_settings
from teamscore.core.database import close_db, init_db
from teamscore.core.repository import PostgresRecordStore

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
        - Create the record tables if missing
        - Attach the record store to ``app.state``

    On shutdown:
        - Close database connection pool
    """
    # Startup
    logger.info("Team Scorecard API starting")
    try:
        pool = await init_db()
        store = PostgresRecordStore(pool)
        await store.create_schema()
        app.state.store = store
        logger.info("Record store initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        # Continue startup; data routes answer 500 until the database is reachable

    yield

    # Shutdown
    logger.info("Team Scorecard API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


# Create FastAPI application
app = FastAPI(
    title="Team Scorecard API",
    version=__version__,
    description=(
        "FastAPI backend for the team-performance scorecard. "
        "Provides scored reports per individual, team, department and company, "
        "data uploads and scoring configuration."
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
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Team Scorecard API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "teamscore.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
