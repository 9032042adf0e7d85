"""
MedCite - FastAPI Application Entry Point

Cited answers to medical questions from PubMed-enriched literature
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from src import __version__
from src.api.schemas import QueryRequest, QueryResponse
from src.pipelines.scope_classifier import ScopeClassificationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    logger.info("Starting MedCite API v%s", __version__)

    try:
        from src.db.postgres import check_database_health

        db_health = await check_database_health()
        if db_health["status"] == "healthy":
            logger.info("Literature index reachable (pgvector: %s)", db_health["pgvector"])
        else:
            logger.warning("Literature index is unreachable")
    except Exception as e:
        logger.warning("Database health check failed: %s", e)

    # Ollama client kept only for readiness probes; each capability owns its own
    try:
        from src.llm.ollama_client import OllamaClient

        app.state.ollama_client = OllamaClient()
        if await app.state.ollama_client.health_check():
            logger.info("Ollama service reachable")
        else:
            logger.warning("Ollama service is unreachable")
    except Exception as e:
        logger.warning("Ollama client initialization failed: %s", e)
        app.state.ollama_client = None

    try:
        from src.pipelines.factory import build_pipeline

        app.state.pipeline = build_pipeline()
        logger.info("Medical QA pipeline initialized")
    except Exception as e:
        logger.error("Pipeline initialization failed: %s", e)
        app.state.pipeline = None

    yield

    # Shutdown
    from src.db.postgres import close_db

    await close_db()
    logger.info("Shutting down MedCite API")


# Create FastAPI application
app = FastAPI(
    title="MedCite",
    description="Evidence-ranked answers to medical questions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Health Check Endpoints
# ============================================


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "medcite-api",
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, Any]:
    """Readiness check with dependency status."""
    pipeline_ready = getattr(app.state, "pipeline", None) is not None
    ollama_client = getattr(app.state, "ollama_client", None)
    ollama_status = "unavailable"
    if ollama_client:
        try:
            ollama_status = "ok" if await ollama_client.health_check() else "degraded"
        except Exception:
            ollama_status = "error"

    return {
        "ready": pipeline_ready,
        "checks": {
            "pipeline": "ok" if pipeline_ready else "unavailable",
            "ollama": ollama_status,
        },
    }


# ============================================
# API v1 Routes
# ============================================


@app.post("/api/v1/query", tags=["Query"], response_model=QueryResponse)
async def query_endpoint(body: QueryRequest) -> dict[str, Any]:
    """
    Submit a medical question.

    Classifies scope, rewrites the query, retrieves literature, re-ranks it
    with PubMed citation counts and returns a cited answer.
    """
    pipeline = getattr(app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline is not initialized",
        )

    try:
        result = await pipeline.run(body.question)
    except ScopeClassificationError as e:
        logger.error("Scope classification unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to classify the question right now. Please try again.",
        ) from e

    return {
        "answer": result.answer,
        "outcome": result.outcome,
        "optimized_query": result.optimized_query,
        "rewrite_fallback_used": result.rewrite_fallback_used,
        "sources": result.sources,
        "query_id": result.query_id,
        "processing_time_ms": result.processing_time_ms,
        "steps": result.steps,
    }


# ============================================
# Metrics Endpoint
# ============================================


@app.get("/metrics", tags=["Monitoring"])
async def metrics_endpoint():
    """Prometheus metrics endpoint."""
    from src.observability.metrics import get_metrics_text

    return PlainTextResponse(content=get_metrics_text(), media_type="text/plain")


# ============================================
# Exception Handlers
# ============================================


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": str(exc) if app.debug else "An unexpected error occurred",
        },
    )


# ============================================
# Main Entry Point
# ============================================


def main():
    """Run the application using uvicorn."""
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )


if __name__ == "__main__":
    main()
