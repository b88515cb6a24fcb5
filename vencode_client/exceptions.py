"""
Exceptions raised by the Vencode client.
"""

from typing import Any, Optional


class VencodeError(Exception):
    """Base exception for all client errors."""


class APIError(VencodeError):
    """The service answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"[{self.status_code}] {self.message}"
        return self.message


class AuthenticationError(APIError):
    """Credentials were missing, invalid or not allowed to access the resource."""


class NotFoundError(APIError):
    """The requested job or resource does not exist."""


class RateLimitError(APIError):
    """Too many requests."""


class ServerError(APIError):
    """The service failed while handling the request."""


class ConnectionFailedError(VencodeError):
    """The request never produced an HTTP response."""


class SubscriptionError(VencodeError):
    """A subscription could not be set up."""


class StreamEndedError(VencodeError):
    """The server closed an event stream."""


def error_for_status(status_code: int, message: str, body: Any = None) -> APIError:
    """
    Map an HTTP status code onto the matching APIError subclass.

    Args:
        status_code: HTTP status of the failed response
        message: Human readable error detail
        body: Parsed response body, if any

    Returns:
        APIError instance (not raised)
    """
    if status_code in (401, 403):
        cls = AuthenticationError
    elif status_code == 404:
        cls = NotFoundError
    elif status_code == 429:
        cls = RateLimitError
    elif status_code >= 500:
        cls = ServerError
    else:
        cls = APIError
    return cls(message, status_code=status_code, body=body)
