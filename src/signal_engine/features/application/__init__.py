"""
Features Application Layer
==========================

Contains:
- Services: FeatureMapper, build_feature_index
- DTOs: Catalog entries and index output
"""

from signal_engine.features.application.dto import FeatureDTO, FeatureMatchInfo, FeatureMappingInfo
from signal_engine.features.application.services import (
    FeatureMapper,
    build_feature_index,
    NAME_MATCH_SIMILARITY,
    KEYWORD_MATCH_SIMILARITY,
)

__all__ = [
    "FeatureDTO",
    "FeatureMatchInfo",
    "FeatureMappingInfo",
    "FeatureMapper",
    "build_feature_index",
    "NAME_MATCH_SIMILARITY",
    "KEYWORD_MATCH_SIMILARITY",
]
