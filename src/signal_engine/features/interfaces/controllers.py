"""
Features Controllers (API Routes)
=================================

Read-only access to the loaded feature catalog.
"""

from typing import List

from fastapi import APIRouter, Depends

from signal_engine.engine import EngineContext, get_engine_context
from signal_engine.features.application import FeatureDTO

router = APIRouter(prefix="/features", tags=["Features"])


@router.get(
    "",
    response_model=List[FeatureDTO],
    summary="List catalog features",
)
async def list_features(engine: EngineContext = Depends(get_engine_context)):
    return [FeatureDTO.from_domain(f) for f in engine.features]


# Export router for inclusion in main app
features_router = router
