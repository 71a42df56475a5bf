"""
Classification Controllers (API Routes)
=======================================

FastAPI routes for signal classification.

Controllers delegate to application services.
"""

import time

from fastapi import APIRouter, Depends, Request

from signal_engine.classification.application import ClassificationResponse, ClassifyRequest
from signal_engine.engine import EngineContext, get_engine_context, new_run_id
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/classification", tags=["Classification"])


# ========== Example payloads for Swagger ==========

CLASSIFY_REQUEST_EXAMPLE = {
    "signals": [
        {
            "source": "chat_thread",
            "source_id": "thread-981",
            "title": "Login fails behind proxy",
            "body": "CSRF trusted origins misconfigured after upgrade",
            "created_at": "2025-01-14T09:12:00Z"
        }
    ],
    "issues": [
        {
            "source": "tracker_issue",
            "source_id": "42",
            "title": "Fix trusted-origins CORS bug",
            "body": "Requests from trusted origins are rejected",
            "created_at": "2025-01-10T16:40:00Z",
            "labels": ["bug", "security"]
        }
    ],
    "min_similarity": 20,
    "strategy": "auto"
}


# ========== Route Handlers ==========

@router.post(
    "/classify",
    response_model=ClassificationResponse,
    summary="Match signals to tracker issues",
    description="""
    Rank candidate issues for every signal and keep matches at or above
    `min_similarity` (0-100).

    **Strategies**:
    - `auto` - embeddings when a provider is configured, lexical fallback on provider failure
    - `embedding` - embeddings only
    - `lexical` - keyword/phrase scoring, no external calls
    """,
    responses={
        200: {"description": "Signals classified"},
        422: {"description": "Invalid request"},
        503: {"description": "Embedding strategy requested without a provider"},
    },
    openapi_extra={"requestBody": {"content": {"application/json": {"example": CLASSIFY_REQUEST_EXAMPLE}}}},
)
async def classify_signals(
    request: Request,
    payload: ClassifyRequest,
    engine: EngineContext = Depends(get_engine_context),
):
    start_time = time.perf_counter()
    run_id = new_run_id()
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.info(
        "Classifying signals",
        extra={
            "correlation_id": correlation_id,
            "run_id": run_id,
            "signals": len(payload.signals),
            "issues": len(payload.issues),
            "strategy": payload.strategy,
        }
    )

    service = engine.classification_service(strategy=payload.strategy, run_id=run_id)
    report = await service.classify(
        signals=[s.to_domain() for s in payload.signals],
        issues=[i.to_domain() for i in payload.issues],
        min_similarity=payload.min_similarity,
    )

    return ClassificationResponse.from_domain(
        report,
        processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        run_id=run_id,
    )


# Export router for inclusion in main app
classification_router = router
