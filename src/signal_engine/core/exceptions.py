"""
Core Exceptions
================

Custom exceptions for the engine following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries (classifier fallback, API handler).
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class EmbeddingProviderException(ExternalServiceException):
    """
    Exception for embedding provider failures.

    `retryable` tells the resolver whether another attempt may succeed.
    """

    retryable = False

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Embedding Provider", message, details)


class RateLimitException(EmbeddingProviderException):
    """Provider throttled the request (HTTP 429)."""

    retryable = True

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        details: Optional[dict] = None
    ):
        self.retry_after = retry_after
        super().__init__(message, details)


class TransientProviderException(EmbeddingProviderException):
    """5xx, timeout or connection failure."""

    retryable = True


class ProviderAuthenticationException(EmbeddingProviderException):
    """Provider rejected the credentials; never retried."""


class InvalidProviderInputException(EmbeddingProviderException):
    """Provider rejected the submitted texts (HTTP 400)."""


class EmbeddingCacheException(RepositoryException):
    """Exception for embedding store read/write failures."""


class VectorDimensionMismatchException(DomainException):
    """Raised when two vectors of different length are compared."""

    def __init__(self, left: int, right: int):
        self.left = left
        self.right = right
        super().__init__(
            f"Vector dimensions do not match: {left} != {right}",
            {"left": left, "right": right}
        )
