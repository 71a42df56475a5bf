"""
Content Hashing
===============

Canonical text representations and the content hash that gates embedding
reuse. Every context that embeds text goes through these helpers so that a
cached vector is only ever compared against the same representation.
"""

import hashlib
from typing import Iterable, Optional

from signal_engine.config import SignalSource

DEFAULT_MAX_CHARS = 6000


def hash_content(text: str) -> str:
    """MD5 hex digest of the exact text."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def truncate_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Deterministic fixed cap applied before provider submission."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars]


def issue_text(title: Optional[str], body: Optional[str], labels: Iterable[str] = ()) -> str:
    """Tracker issue representation: title, body and sorted labels."""
    parts = [title or "", body or ""]
    label_line = ", ".join(sorted(labels))
    if label_line:
        parts.append(label_line)
    return "\n\n".join(p for p in parts if p.strip())


def chat_text(title: Optional[str], body: Optional[str]) -> str:
    """Chat thread/message representation."""
    return "\n\n".join(p for p in (title or "", body or "") if p.strip())


def feature_text(name: str, description: Optional[str], keywords: Iterable[str] = ()) -> str:
    """Feature representation: `name: description Keywords: k1, k2`."""
    text = f"{name}: {description or ''}".strip()
    keywords = list(keywords)
    if keywords:
        text += f" Keywords: {', '.join(keywords)}"
    return text


def signal_text(signal) -> str:
    """Text representation of any Signal."""
    if signal.source == SignalSource.TRACKER_ISSUE:
        return issue_text(signal.title, signal.body, signal.labels)
    return chat_text(signal.title, signal.body)
