"""
Shared Domain
=============

Signal entity and content hashing shared by every bounded context.
"""

from signal_engine.shared.domain.entities import Signal, IssueRef
from signal_engine.shared.domain.content import (
    DEFAULT_MAX_CHARS,
    hash_content,
    truncate_text,
    issue_text,
    chat_text,
    feature_text,
    signal_text,
)

__all__ = [
    "Signal",
    "IssueRef",
    "DEFAULT_MAX_CHARS",
    "hash_content",
    "truncate_text",
    "issue_text",
    "chat_text",
    "feature_text",
    "signal_text",
]
