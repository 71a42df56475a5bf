"""
Features Domain Entities
========================

Product features from the catalog and the links between features and
signal groups.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from signal_engine.shared.domain import feature_text


@dataclass(frozen=True)
class Feature:
    """A product feature from the catalog."""
    id: str
    name: str
    description: str = ""
    related_keywords: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate feature."""
        if not self.id or not self.name:
            raise ValueError("Feature id and name are required")
        object.__setattr__(self, "related_keywords", tuple(self.related_keywords or ()))

    @property
    def text(self) -> str:
        """Representation used for embedding and content hashing."""
        return feature_text(self.name, self.description, self.related_keywords)


@dataclass(frozen=True)
class FeatureMatch:
    """A feature affected by a group, with similarity on [0, 1]."""
    feature: Feature
    similarity: float
    rule_based: bool = False


@dataclass
class FeatureMapping:
    """Inverse index entry: which groups touch a feature."""
    feature: Feature
    group_ids: List[str] = field(default_factory=list)
    signal_count: int = 0
