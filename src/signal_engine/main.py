"""
Signal Engine - Main Application
================================

Classifies user-reported signals (chat messages and threads) against
tracker issues and correlates signals into topic groups mapped onto a
product feature catalog.

Modules:
- Classification: Rank tracker issues for each chat signal
- Correlation: Group related signals, detect duplicates
- Features: Feature catalog and feature affinity

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, scorers and clustering
- Infrastructure: Embedding provider, embedding cache stores, database
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request

from signal_engine.classification.interfaces import classification_router
from signal_engine.config import CacheBackend, settings
from signal_engine.core import ApplicationException
from signal_engine.correlation.interfaces import correlation_router
from signal_engine.engine import build_engine_context
from signal_engine.features.interfaces import features_router
from signal_engine.infrastructure.database import close_database, create_tables, init_database
from signal_engine.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from signal_engine.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: configure logging, prepare the embedding cache backend, load
    the feature catalog and build the engine context.
    Shutdown: release database connections.
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Signal Engine", extra={"version": settings.app_version})

    uses_database = settings.cache_backend == CacheBackend.DATABASE.value
    if uses_database:
        init_database()
        try:
            await create_tables()
        except Exception as e:
            logger.warning(f"Table creation skipped: {e}")

    app.state.settings = settings
    app.state.engine = build_engine_context(settings)

    logger.info(
        "Signal Engine started",
        extra={
            "embeddings_enabled": app.state.engine.embeddings_enabled,
            "cache_backend": settings.cache_backend,
            "features": len(app.state.engine.features),
        }
    )

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Signal Engine")
    if uses_database:
        await close_database()
    logger.info("Signal Engine shutdown complete")


app = FastAPI(
    title="Signal Engine API",
    description="""
    ## Signal Classification & Correlation Engine

    ### Classification
    - `POST /classification/classify` - Rank tracker issues for each chat signal

    ### Correlation
    - `POST /correlation/groups` - Group related signals (semantic or lexical)
    - `POST /correlation/groups/by-issue` - Regroup classification output by issue
    - `POST /correlation/duplicates` - Report near-identical signals

    ### Features
    - `GET /features` - Loaded feature catalog

    Scoring uses embeddings when a provider is configured and falls back to
    weighted keyword matching otherwise.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === Middleware ===
# Last added runs first: correlation IDs must exist before request logging
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(classification_router)
app.include_router(correlation_router)
app.include_router(features_router)


@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "embeddings": "available",
                        "cache_backend": "json",
                        "feature_catalog": "loaded (12 features)"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """Health check endpoint for load balancers and orchestrators."""
    engine = getattr(request.app.state, "engine", None)
    checks = {
        "embeddings": "not_configured",
        "cache_backend": settings.cache_backend,
        "feature_catalog": "empty",
    }
    if engine is not None:
        checks["embeddings"] = "available" if engine.embeddings_enabled else "not_configured"
        if engine.features:
            checks["feature_catalog"] = f"loaded ({len(engine.features)} features)"

    return {
        "status": "healthy" if engine is not None else "starting",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "classification": {
                "prefix": "/classification",
                "endpoints": ["POST /classification/classify - Classify signals against issues"]
            },
            "correlation": {
                "prefix": "/correlation",
                "endpoints": [
                    "POST /correlation/groups - Group signals",
                    "POST /correlation/groups/by-issue - Group classified signals by issue",
                    "POST /correlation/duplicates - Find duplicates"
                ]
            },
            "features": {
                "prefix": "/features",
                "endpoints": ["GET /features - List catalog features"]
            }
        }
    }
