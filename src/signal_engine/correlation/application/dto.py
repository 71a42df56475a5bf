"""
Correlation Application DTOs
============================

Data Transfer Objects for the grouping API.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from signal_engine.classification.application.dto import ClassifiedMessageInfo
from signal_engine.classification.domain import CandidateMatch, ClassifiedMessage
from signal_engine.correlation.domain import Group, GroupingResult, IssueGroup, IssueGroupingResult
from signal_engine.features.application import FeatureDTO, FeatureMappingInfo, FeatureMatchInfo
from signal_engine.shared.application import IssueRefDTO, SignalDTO


# ========== Request DTOs ==========

class GroupRequest(BaseModel):
    """Request model for grouping signals."""
    signals: List[SignalDTO]
    features: Optional[List[FeatureDTO]] = Field(
        None,
        description="Feature catalog; the configured catalog is used when omitted"
    )
    mode: Literal["semantic", "lexical"] = "semantic"
    min_similarity: Optional[float] = Field(None, ge=0.0, le=1.0)
    max_groups: Optional[int] = Field(None, ge=1)


class GroupByIssueRequest(BaseModel):
    """Request model for issue-anchored grouping of classifier output."""
    classified: List[ClassifiedMessageInfo]
    min_similarity: float = Field(default=60.0, ge=0.0, le=100.0)
    max_groups: int = Field(default=50, ge=1)
    top_issues_per_thread: int = Field(default=3, ge=1)

    def to_domain(self) -> List[ClassifiedMessage]:
        return [
            ClassifiedMessage(
                signal=item.signal.to_domain(),
                related_issues=[
                    CandidateMatch(
                        issue=m.issue.to_domain(),
                        similarity_score=m.similarity_score,
                        matched_terms=list(m.matched_terms),
                    )
                    for m in item.related_issues
                ],
            )
            for item in self.classified
        ]


class DuplicatesRequest(BaseModel):
    """Request model for duplicate detection."""
    signals: List[SignalDTO]
    threshold: float = Field(default=0.9, ge=0.0, le=1.0)
    use_embeddings: bool = False


# ========== Response DTOs ==========

class GroupInfo(BaseModel):
    """A group of related signals."""
    id: str
    signals: List[SignalDTO]
    similarity: float
    suggested_title: str
    affects_features: List[FeatureMatchInfo]
    is_cross_cutting: bool
    canonical_issue: Optional[IssueRefDTO] = None

    @classmethod
    def from_domain(cls, group: Group) -> "GroupInfo":
        return cls(
            id=group.id,
            signals=[SignalDTO.from_domain(s) for s in group.signals],
            similarity=round(group.similarity, 4),
            suggested_title=group.suggested_title,
            affects_features=[FeatureMatchInfo.from_domain(m) for m in group.affects_features],
            is_cross_cutting=group.is_cross_cutting,
            canonical_issue=IssueRefDTO.from_domain(group.canonical_issue) if group.canonical_issue else None,
        )


class GroupingStatsInfo(BaseModel):
    total_signals: int
    grouped_signals: int
    cross_cutting_groups: int
    embeddings_computed: int
    embeddings_from_cache: int
    skipped_signals: int


class GroupingResponse(BaseModel):
    """Response model for a grouping run."""
    run_id: Optional[str] = None
    mode: str
    groups: List[GroupInfo]
    ungrouped_signals: List[SignalDTO]
    stats: GroupingStatsInfo
    feature_index: List[FeatureMappingInfo] = Field(default_factory=list)
    processing_time_ms: int

    @classmethod
    def from_domain(
        cls,
        result: GroupingResult,
        mode: str,
        processing_time_ms: int,
        feature_index: Optional[list] = None,
        run_id: Optional[str] = None,
    ) -> "GroupingResponse":
        return cls(
            run_id=run_id,
            mode=mode,
            groups=[GroupInfo.from_domain(g) for g in result.groups],
            ungrouped_signals=[SignalDTO.from_domain(s) for s in result.ungrouped_signals],
            stats=GroupingStatsInfo(**vars(result.stats)),
            feature_index=[FeatureMappingInfo.from_domain(m) for m in feature_index or []],
            processing_time_ms=processing_time_ms,
        )


class ThreadMatchInfo(BaseModel):
    signal: SignalDTO
    similarity_score: float


class IssueGroupInfo(BaseModel):
    """Issue-anchored group."""
    id: str
    issue: SignalDTO
    threads: List[ThreadMatchInfo]
    avg_similarity: float

    @classmethod
    def from_domain(cls, group: IssueGroup) -> "IssueGroupInfo":
        return cls(
            id=group.id,
            issue=SignalDTO.from_domain(group.issue),
            threads=[
                ThreadMatchInfo(signal=SignalDTO.from_domain(t.signal), similarity_score=t.similarity_score)
                for t in group.threads
            ],
            avg_similarity=round(group.avg_similarity, 4),
        )


class IssueGroupingResponse(BaseModel):
    """Response model for issue-anchored grouping."""
    groups: List[IssueGroupInfo]
    total_threads: int
    grouped_threads: int
    unique_issues: int

    @classmethod
    def from_domain(cls, result: IssueGroupingResult) -> "IssueGroupingResponse":
        return cls(
            groups=[IssueGroupInfo.from_domain(g) for g in result.groups],
            total_threads=result.total_threads,
            grouped_threads=result.grouped_threads,
            unique_issues=result.unique_issues,
        )


class DuplicatesResponse(BaseModel):
    """Response model for duplicate detection."""
    duplicate_groups: List[GroupInfo]
    duplicate_signals: int
