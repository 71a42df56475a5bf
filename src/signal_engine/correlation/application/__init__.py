"""
Correlation Application Layer
=============================

Contains:
- Services: CorrelationService (semantic, lexical, issue-anchored, duplicates)
- DTOs: Data transfer objects for API serialization
"""

from signal_engine.correlation.application.dto import (
    GroupRequest,
    GroupByIssueRequest,
    DuplicatesRequest,
    GroupInfo,
    GroupingStatsInfo,
    GroupingResponse,
    ThreadMatchInfo,
    IssueGroupInfo,
    IssueGroupingResponse,
    DuplicatesResponse,
)
from signal_engine.correlation.application.services import CorrelationService

__all__ = [
    # DTOs
    "GroupRequest",
    "GroupByIssueRequest",
    "DuplicatesRequest",
    "GroupInfo",
    "GroupingStatsInfo",
    "GroupingResponse",
    "ThreadMatchInfo",
    "IssueGroupInfo",
    "IssueGroupingResponse",
    "DuplicatesResponse",
    # Services
    "CorrelationService",
]
