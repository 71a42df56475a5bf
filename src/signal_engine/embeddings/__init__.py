"""
Embeddings Module
=================

Bounded context for content-hash gated embedding reuse.

Structure:
- domain/: Records, requests and run reports
- application/: Cache and resolver
- infrastructure/: JSON, SQL and in-memory stores
"""
