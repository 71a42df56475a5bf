"""
Correlation Module
==================

Bounded context for grouping related signals.

Structure:
- domain/: Groups and the clustering primitive
- application/: CorrelationService and DTOs
- interfaces/: API controllers
"""
