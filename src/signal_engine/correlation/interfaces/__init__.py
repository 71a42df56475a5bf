"""
Correlation Interfaces Layer
============================

Contains:
- Controllers: FastAPI route handlers
"""

from signal_engine.correlation.interfaces.controllers import correlation_router

__all__ = ["correlation_router"]
