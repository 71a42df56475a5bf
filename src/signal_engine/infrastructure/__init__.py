"""
Infrastructure Module
=====================

Cross-cutting technical adapters:
- database: async SQLAlchemy engine and sessions
- embeddings: embedding provider clients
"""
