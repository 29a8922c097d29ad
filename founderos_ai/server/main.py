"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from founderos_ai.core.logging_config import get_logger, setup_logging
from founderos_ai.core.monitoring import initialize_logfire

from .api.v1 import agents, health, proactive
from .core import constant
from .core.config import settings
from .core.database import init_db
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the database schema on startup when it is missing. Production
    deployments run the alembic migrations instead.
    """
    # Startup
    try:
        logger.info("Starting up FounderOS-AI Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down FounderOS-AI Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    FounderOS-AI Server API

    Backend for the FounderOS agent platform: run AI agents over a founder's
    workspace, browse the agent catalogue and execution history, and surface
    proactive suggestions about runway, deadlines and stalled work.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, tags=["health"])
app.include_router(agents.router, prefix=f"{constant.API_V1_STR}/agents", tags=["agents"])
app.include_router(proactive.router, prefix=f"{constant.API_V1_STR}/proactive", tags=["proactive"])
