"""
Shared Application Layer
========================

DTOs reused by every context's API.
"""

from signal_engine.shared.application.dto import SignalDTO, IssueRefDTO, SignalSourceStr

__all__ = [
    "SignalDTO",
    "IssueRefDTO",
    "SignalSourceStr",
]
