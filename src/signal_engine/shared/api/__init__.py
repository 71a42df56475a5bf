"""
Shared API Layer
================

Middleware and exception handlers used by the FastAPI application.
"""
