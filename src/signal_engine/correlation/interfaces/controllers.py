"""
Correlation Controllers (API Routes)
====================================

FastAPI routes for grouping signals and detecting duplicates.

Controllers delegate to application services.
"""

import time

from fastapi import APIRouter, Depends, Request

from signal_engine.correlation.application import (
    DuplicatesRequest,
    DuplicatesResponse,
    GroupByIssueRequest,
    GroupInfo,
    GroupingResponse,
    GroupRequest,
    IssueGroupingResponse,
)
from signal_engine.engine import EngineContext, get_engine_context, new_run_id
from signal_engine.features.application import build_feature_index
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/correlation", tags=["Correlation"])


@router.post(
    "/groups",
    response_model=GroupingResponse,
    summary="Group related signals",
    description="""
    Cluster signals into topics.

    - `semantic` - embedding similarity (default threshold 0.6), feature
      affinity from the group's mean embedding; singletons are groups
    - `lexical` - word overlap (default threshold 0.5), multi-member
      groups only, features matched by name/keyword rules

    Clustering is greedy and seed-only: each member is compared with the
    group's first signal, so input order matters.
    """,
    responses={
        200: {"description": "Signals grouped"},
        503: {"description": "Semantic mode requested without an embedding provider"},
    }
)
async def group_signals(
    request: Request,
    payload: GroupRequest,
    engine: EngineContext = Depends(get_engine_context),
):
    start_time = time.perf_counter()
    run_id = new_run_id()
    settings = engine.settings
    signals = [s.to_domain() for s in payload.signals]
    features = [f.to_domain() for f in payload.features] if payload.features is not None else engine.features

    logger.info(
        "Grouping signals",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "run_id": run_id,
            "mode": payload.mode,
            "signals": len(signals),
            "features": len(features),
        }
    )

    service = engine.correlation_service(run_id=run_id)
    if payload.mode == "lexical":
        result = service.group_signals_lexical(
            signals,
            features=features,
            min_similarity=payload.min_similarity if payload.min_similarity is not None
            else settings.lexical_grouping_min_similarity,
            max_groups=payload.max_groups or settings.lexical_grouping_max_groups,
        )
    else:
        result = await service.group_signals_semantic(
            signals,
            features=features,
            min_similarity=payload.min_similarity if payload.min_similarity is not None
            else settings.grouping_min_similarity,
            max_groups=payload.max_groups or settings.grouping_max_groups,
        )

    return GroupingResponse.from_domain(
        result,
        mode=payload.mode,
        processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        feature_index=build_feature_index(result.groups, features),
        run_id=run_id,
    )


@router.post(
    "/groups/by-issue",
    response_model=IssueGroupingResponse,
    summary="Group classified signals by matched issue",
    description="""
    Regroup classification output: each signal joins the group of every one
    of its top issues (default 3) scoring at least `min_similarity` (0-100).
    """,
)
async def group_by_issue(
    payload: GroupByIssueRequest,
    engine: EngineContext = Depends(get_engine_context),
):
    service = engine.correlation_service()
    result = service.group_by_classification(
        payload.to_domain(),
        min_similarity=payload.min_similarity,
        max_groups=payload.max_groups,
        top_issues_per_thread=payload.top_issues_per_thread,
    )
    return IssueGroupingResponse.from_domain(result)


@router.post(
    "/duplicates",
    response_model=DuplicatesResponse,
    summary="Find near-identical signals",
    description="""
    Report near-duplicate signals (default threshold 0.9). Word overlap by
    default; embedding similarity when `use_embeddings` is set. Results are
    informational and never merged into grouping output.
    """,
)
async def find_duplicates(
    payload: DuplicatesRequest,
    engine: EngineContext = Depends(get_engine_context),
):
    service = engine.correlation_service(run_id=new_run_id())
    signals = [s.to_domain() for s in payload.signals]
    if payload.use_embeddings:
        groups = await service.find_duplicates_semantic(signals, threshold=payload.threshold)
    else:
        groups = service.find_duplicates(signals, threshold=payload.threshold)

    return DuplicatesResponse(
        duplicate_groups=[GroupInfo.from_domain(g) for g in groups],
        duplicate_signals=sum(g.size for g in groups),
    )


# Export router for inclusion in main app
correlation_router = router
