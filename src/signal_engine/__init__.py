"""
Signal Engine
=============

Classification and correlation of discussion signals against tracked issues.

Bounded contexts:
- similarity: lexical and vector similarity primitives
- embeddings: content-hash gated embedding cache and resolver
- classification: signal to issue matching
- correlation: grouping of related signals
- features: mapping groups to product features
"""

__version__ = "1.0.0"
