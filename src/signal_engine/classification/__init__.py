"""
Classification Module
=====================

Bounded context for matching signals to tracker issues.

Structure:
- domain/: Matches and reports
- application/: Scoring strategies, service and DTOs
- interfaces/: API controllers
"""
