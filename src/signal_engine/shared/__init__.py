"""
Shared Kernel Module
====================

This module contains shared infrastructure and domain elements used across
all bounded contexts (embeddings, classification, correlation, features).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains the Signal entity and generic infrastructure
- Scoring and grouping logic lives within each module

DO NOT add classification or grouping logic to the shared kernel.
"""

__version__ = "1.0.0"
