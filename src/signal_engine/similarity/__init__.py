"""
Similarity Module
=================

Bounded context holding the similarity primitives (domain layer only).
"""
