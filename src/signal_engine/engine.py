"""
Engine Wiring
=============

Builds the long-lived collaborators (provider, store, feature catalog) once
at startup and hands out per-run services. Each run gets its own
EmbeddingCache so concurrent runs never share session state.
"""

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import HTTPException, Request

from signal_engine.classification.application import ClassificationService, build_scoring_strategy
from signal_engine.config import ScoringStrategyName, Settings
from signal_engine.correlation.application import CorrelationService
from signal_engine.embeddings.application import EmbeddingCache, EmbeddingResolver, IEmbeddingStore
from signal_engine.embeddings.infrastructure import create_embedding_store
from signal_engine.features.domain import Feature
from signal_engine.features.infrastructure import load_feature_catalog
from signal_engine.infrastructure.embeddings import IEmbeddingProvider, create_embedding_provider
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def new_run_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class EngineContext:
    """Collaborators shared by every run."""
    settings: Settings
    store: IEmbeddingStore
    provider: Optional[IEmbeddingProvider] = None
    features: List[Feature] = field(default_factory=list)

    @property
    def embeddings_enabled(self) -> bool:
        return self.provider is not None

    def new_cache(self) -> Optional[EmbeddingCache]:
        """Fresh per-run cache, or None in lexical-only mode."""
        if self.provider is None:
            return None
        return EmbeddingCache(self.store, model=self.provider.model)

    def classification_service(
        self,
        strategy: ScoringStrategyName | str = ScoringStrategyName.AUTO,
        run_id: Optional[str] = None,
    ) -> ClassificationService:
        scoring = build_scoring_strategy(
            self.settings,
            provider=self.provider,
            cache=self.new_cache(),
            strategy=strategy,
            run_id=run_id,
        )
        return ClassificationService(
            scoring,
            top_n=self.settings.classification_top_matches,
            run_id=run_id,
        )

    def correlation_service(self, run_id: Optional[str] = None) -> CorrelationService:
        resolver = None
        cache = self.new_cache()
        if cache is not None:
            resolver = EmbeddingResolver.from_settings(self.settings, self.provider, cache, run_id=run_id)
        return CorrelationService(
            resolver=resolver,
            signal_batch_size=self.settings.signal_batch_size,
            feature_batch_size=self.settings.feature_batch_size,
            feature_min_similarity=self.settings.feature_min_similarity,
            max_features_per_group=self.settings.max_features_per_group,
            run_id=run_id,
        )


def build_engine_context(settings: Settings) -> EngineContext:
    """
    Create provider, store and catalog from settings.

    A missing feature catalog file is not fatal; grouping then runs
    without feature mapping unless the caller supplies features.
    """
    provider = create_embedding_provider(settings)
    model = provider.model if provider is not None else settings.embedding_model
    store = create_embedding_store(settings, model=model)

    features: List[Feature] = []
    if settings.features_path.exists():
        features = load_feature_catalog(settings.features_path)
    else:
        logger.info("No feature catalog found", extra={"path": str(settings.features_path)})

    return EngineContext(settings=settings, store=store, provider=provider, features=features)


def get_engine_context(request: Request) -> EngineContext:
    """FastAPI dependency returning the context built at startup."""
    context = getattr(request.app.state, "engine", None)
    if context is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return context


__all__ = [
    "EngineContext",
    "build_engine_context",
    "get_engine_context",
    "new_run_id",
]
