"""
Core Module
============

Shared core utilities and abstractions used across the engine.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from signal_engine.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ConfigurationException,
    ExternalServiceException,
    EmbeddingProviderException,
    RateLimitException,
    TransientProviderException,
    ProviderAuthenticationException,
    InvalidProviderInputException,
    EmbeddingCacheException,
    VectorDimensionMismatchException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ConfigurationException",
    "ExternalServiceException",
    "EmbeddingProviderException",
    "RateLimitException",
    "TransientProviderException",
    "ProviderAuthenticationException",
    "InvalidProviderInputException",
    "EmbeddingCacheException",
    "VectorDimensionMismatchException",
]
