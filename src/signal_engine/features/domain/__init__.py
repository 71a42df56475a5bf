"""
Features Domain Layer
=====================

Contains:
- Entities: Feature
- Value Objects: FeatureMatch, FeatureMapping
"""

from signal_engine.features.domain.entities import Feature, FeatureMatch, FeatureMapping

__all__ = [
    "Feature",
    "FeatureMatch",
    "FeatureMapping",
]
