"""
Custom exceptions for the Drip API client

Every failure is raised to the caller; nothing is retried or swallowed.
"""
from typing import Optional


class DripException(Exception):
    """Base exception for all Drip client errors."""
    pass


class ConfigurationException(DripException):
    """Exception for missing or invalid client configuration."""
    pass


class RequestBuildError(DripException):
    """Raised when a request cannot be constructed (bad payload or URL)."""
    pass


class DripNetworkError(DripException):
    """
    Raised when the request never got a response.

    Covers DNS failures, refused connections and timeouts. The transport
    exception is available as ``__cause__``.
    """
    pass


class DripAPIError(DripException):
    """Raised when Drip answers with a status the operation does not accept."""

    def __init__(self, status: int, body: str, operation: Optional[str] = None):
        self.status = status
        self.body = body
        self.operation = operation or "Drip API request"
        super().__init__(f"{self.operation} failed ({status}): {body}")
