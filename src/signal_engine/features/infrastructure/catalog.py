"""
Feature Catalog Loader
======================

Reads the product feature catalog from YAML.

Expected layout:

    features:
      - id: auth
        name: Authentication
        description: Sign-in, sessions and tokens
        related_keywords: [login, sso, session]

A bare top-level list of entries is accepted too.
"""

from pathlib import Path
from typing import List

import yaml
from pydantic import ValidationError

from signal_engine.core import ConfigurationException
from signal_engine.features.application.dto import FeatureDTO
from signal_engine.features.domain import Feature
from signal_engine.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def parse_feature_catalog(raw: str) -> List[Feature]:
    """Parse catalog YAML text into features."""
    try:
        data = yaml.safe_load(raw) or []
    except yaml.YAMLError as e:
        raise ConfigurationException(f"Feature catalog is not valid YAML: {e}")

    if isinstance(data, dict):
        data = data.get("features", [])
    if not isinstance(data, list):
        raise ConfigurationException("Feature catalog must be a list of features")

    features = []
    seen = set()
    for index, entry in enumerate(data):
        try:
            feature = FeatureDTO.model_validate(entry).to_domain()
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid feature at position {index}",
                {"errors": e.errors(include_url=False)}
            )
        if feature.id in seen:
            raise ConfigurationException(f"Duplicate feature id: {feature.id}")
        seen.add(feature.id)
        features.append(feature)
    return features


def load_feature_catalog(path: Path | str) -> List[Feature]:
    """
    Load features from a YAML file.

    Raises:
        ConfigurationException: If the file is missing or malformed
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationException(f"Cannot read feature catalog {path}: {e}")

    features = parse_feature_catalog(raw)
    logger.info("Feature catalog loaded", extra={"path": str(path), "features": len(features)})
    return features
