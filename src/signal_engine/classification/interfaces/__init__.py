"""
Classification Interfaces Layer
===============================

Contains:
- Controllers: FastAPI route handlers
"""

from signal_engine.classification.interfaces.controllers import classification_router

__all__ = ["classification_router"]
