"""
Custom exceptions for upload operations.

Every terminal failure of an upload session is one of these classes.
"""
from typing import Optional, Any, Dict


class UploadError(Exception):
    """Base exception for all upload-related errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            status_code: HTTP status code (if the error came from a response)
            details: Extra context (response body, error code, request URL)
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(UploadError):
    """Malformed or missing input, detected before any network call."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, None, details)


class AuthenticationError(UploadError):
    """Exception raised for HTTP 401/403 responses."""
    pass


class NetworkError(UploadError):
    """Non-2xx response, or an ok response missing a required header."""
    pass


class UploadTimeoutError(NetworkError):
    """A request did not complete within the configured timeout."""
    pass


class UnexpectedUploadError(UploadError):
    """
    Wraps an unexpected exception (I/O failure, unreachable host).

    The original exception is kept as ``__cause__`` and ``original``.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None) -> None:
        self.original = original
        details = {'error': repr(original)} if original is not None else None
        super().__init__(message, None, details)


class InvalidStateTransition(UploadError):
    """Raised when a session is moved along an edge that does not exist."""

    def __init__(self, current: Any, target: Any) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid upload state transition: {current} -> {target}")
