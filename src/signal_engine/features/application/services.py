"""
Feature Mapping Services
========================

Links signal groups to catalog features, by embedding affinity when
vectors are available and by name/keyword rules otherwise.
"""

from typing import Dict, Iterable, List, Optional, Sequence

from signal_engine.config import EntityType
from signal_engine.embeddings.application import EmbeddingResolver
from signal_engine.embeddings.domain import EmbeddingRequest
from signal_engine.features.domain import Feature, FeatureMapping, FeatureMatch
from signal_engine.shared.infrastructure.logging import get_logger
from signal_engine.similarity.domain import similarity_unit

logger = get_logger(__name__)

NAME_MATCH_SIMILARITY = 0.9
KEYWORD_MATCH_SIMILARITY = 0.8
MIN_KEYWORD_LENGTH = 3


class FeatureMapper:
    """
    Service for mapping groups to features.

    Feature embeddings go through the same cache as signals, under the
    `feature` entity type.
    """

    def __init__(
        self,
        features: Sequence[Feature],
        resolver: Optional[EmbeddingResolver] = None,
        min_similarity: float = 0.5,
        max_features: int = 5,
        batch_size: int = 50,
    ):
        self.features = list(features)
        self._resolver = resolver
        self._min_similarity = min_similarity
        self._max_features = max_features
        self._batch_size = batch_size
        self._vectors: Optional[Dict[str, List[float]]] = None

    async def feature_vectors(self) -> Dict[str, List[float]]:
        """
        Embeddings for every catalog feature, resolved once per mapper.

        Features whose embedding could not be produced are left out.
        """
        if self._vectors is not None:
            return self._vectors
        if self._resolver is None or not self.features:
            self._vectors = {}
            return self._vectors

        report = await self._resolver.resolve(
            [EmbeddingRequest(EntityType.FEATURE, f.id, f.text) for f in self.features],
            batch_size=self._batch_size,
        )
        self._vectors = {}
        for feature in self.features:
            vector = report.vector_for(EntityType.FEATURE, feature.id)
            if vector is not None:
                self._vectors[feature.id] = vector
        logger.info(
            "Feature embeddings resolved",
            extra={
                "features": len(self.features),
                "from_cache": report.from_cache,
                "computed": report.computed,
                "skipped": len(report.skipped),
            }
        )
        if report.skipped:
            logger.warning(
                "Feature embeddings missing, falling back to keyword rules for them",
                extra={"features": report.skipped_ids}
            )
        return self._vectors

    def affected_features(
        self,
        group_vector: Sequence[float],
        feature_vectors: Dict[str, List[float]],
    ) -> List[FeatureMatch]:
        """Features at or above the threshold, best first, capped."""
        if not group_vector:
            return []
        matches = []
        for feature in self.features:
            vector = feature_vectors.get(feature.id)
            if vector is None:
                continue
            similarity = similarity_unit(group_vector, vector)
            if similarity >= self._min_similarity:
                matches.append(FeatureMatch(feature=feature, similarity=similarity))
        matches.sort(key=lambda m: -m.similarity)
        return matches[:self._max_features]

    def map_group(
        self,
        group_vector: Sequence[float],
        feature_vectors: Dict[str, List[float]],
        text: str,
    ) -> List[FeatureMatch]:
        """
        Features for one group.

        Embedding affinity for features that have a vector this run, and
        name/keyword rules on the group text for the ones that do not.
        """
        matches = self.affected_features(group_vector, feature_vectors)
        unembedded = [f for f in self.features if f.id not in feature_vectors]
        if unembedded:
            matches.extend(self._rule_matches(text, unembedded))
            matches.sort(key=lambda m: -m.similarity)
        return matches[:self._max_features]

    def match_by_rules(self, text: str) -> List[FeatureMatch]:
        """
        Rule-based matching on raw text.

        Feature name found in the text scores 0.9; otherwise any related
        keyword longer than two chars scores 0.8.
        """
        return self._rule_matches(text, self.features)[:self._max_features]

    def _rule_matches(self, text: str, features: Sequence[Feature]) -> List[FeatureMatch]:
        haystack = (text or "").lower()
        matches = []
        for feature in features:
            if feature.name.lower() in haystack:
                matches.append(FeatureMatch(feature, NAME_MATCH_SIMILARITY, rule_based=True))
                continue
            for keyword in feature.related_keywords:
                keyword = keyword.lower()
                if len(keyword) >= MIN_KEYWORD_LENGTH and keyword in haystack:
                    matches.append(FeatureMatch(feature, KEYWORD_MATCH_SIMILARITY, rule_based=True))
                    break
        matches = [m for m in matches if m.similarity >= self._min_similarity]
        matches.sort(key=lambda m: -m.similarity)
        return matches


def build_feature_index(groups: Iterable, features: Sequence[Feature]) -> List[FeatureMapping]:
    """
    Invert group -> features into feature -> groups.

    Features untouched by any group are listed with no groups, in catalog
    order, so downstream exports see the whole catalog.
    """
    index = {f.id: FeatureMapping(feature=f) for f in features}
    for group in groups:
        for match in group.affects_features:
            mapping = index.get(match.feature.id)
            if mapping is None:
                mapping = index[match.feature.id] = FeatureMapping(feature=match.feature)
            mapping.group_ids.append(group.id)
            mapping.signal_count += len(group.signals)
    return list(index.values())
