"""
Features Interfaces Layer
=========================

Contains:
- Controllers: FastAPI route handlers
"""

from signal_engine.features.interfaces.controllers import features_router

__all__ = ["features_router"]
