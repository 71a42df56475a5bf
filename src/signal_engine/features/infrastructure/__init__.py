"""
Features Infrastructure Layer
=============================

Contains:
- Catalog: YAML feature catalog loader
"""

from signal_engine.features.infrastructure.catalog import load_feature_catalog, parse_feature_catalog

__all__ = [
    "load_feature_catalog",
    "parse_feature_catalog",
]
