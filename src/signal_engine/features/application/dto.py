"""
Features Application DTOs
=========================

Pydantic models for feature catalog entries and feature index output.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from signal_engine.features.domain import Feature, FeatureMapping, FeatureMatch


class FeatureDTO(BaseModel):
    """Feature catalog entry."""
    id: str = Field(..., min_length=1, description="Stable feature identifier")
    name: str = Field(..., min_length=1, description="Display name")
    description: str = Field(default="", description="What the feature does")
    related_keywords: List[str] = Field(default_factory=list, description="Terms used by rule-based matching")

    @field_validator("related_keywords")
    @classmethod
    def strip_keywords(cls, v: List[str]) -> List[str]:
        """Drop blank keywords."""
        return [k.strip() for k in v if k and k.strip()]

    def to_domain(self) -> Feature:
        return Feature(
            id=self.id,
            name=self.name,
            description=self.description,
            related_keywords=tuple(self.related_keywords),
        )

    @classmethod
    def from_domain(cls, feature: Feature) -> "FeatureDTO":
        return cls(
            id=feature.id,
            name=feature.name,
            description=feature.description,
            related_keywords=list(feature.related_keywords),
        )


class FeatureMatchInfo(BaseModel):
    """Feature affected by a group."""
    id: str
    name: str
    similarity: float = Field(..., ge=0.0, le=1.0)
    rule_based: bool = False

    @classmethod
    def from_domain(cls, match: FeatureMatch) -> "FeatureMatchInfo":
        return cls(
            id=match.feature.id,
            name=match.feature.name,
            similarity=round(match.similarity, 4),
            rule_based=match.rule_based,
        )


class FeatureMappingInfo(BaseModel):
    """Feature index entry."""
    feature: FeatureDTO
    group_ids: List[str]
    signal_count: int

    @classmethod
    def from_domain(cls, mapping: FeatureMapping) -> "FeatureMappingInfo":
        return cls(
            feature=FeatureDTO.from_domain(mapping.feature),
            group_ids=list(mapping.group_ids),
            signal_count=mapping.signal_count,
        )
