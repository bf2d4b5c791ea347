"""Exception hierarchy shared by the gate, decoder and relay.

Every error carries the HTTP status and the short message the caller is
allowed to see. Internal causes stay on ``__cause__`` and in the logs.
"""

from __future__ import annotations

from fastapi import status


class RelayError(Exception):
    """Base class for failures converted into a JSON ``{"error": ...}`` body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ConfigurationError(RelayError):
    """Raised when the upstream credential is not configured."""

    message = "Server configuration error"


class InvalidRequestError(RelayError):
    """Raised for requests rejected because of the caller's input."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class MethodNotAllowedError(InvalidRequestError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    message = "Method not allowed"


class MissingAudioError(InvalidRequestError):
    message = "No audio file provided"


class AuthorizationError(InvalidRequestError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Subscription required"


class UploadTooLargeError(InvalidRequestError):
    # Literal: Starlette deprecates the old 413 constant name.
    status_code = 413
    message = "Audio file too large"


class DecodeError(RelayError):
    """Raised when the multipart body is malformed or truncated."""

    def __init__(self, detail: str) -> None:
        super().__init__()
        self.detail = detail

    def __str__(self) -> str:
        return self.detail


class UpstreamError(RelayError):
    """Raised when the transcription API answers with an error status."""

    message = "Upstream API error"

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or None, status_code=status_code)


class UpstreamTimeoutError(RelayError):
    status_code = status.HTTP_408_REQUEST_TIMEOUT
    message = "Request timeout"


class UnclassifiedError(RelayError):
    """Any other failure. The detail is logged, never returned."""


__all__ = [
    "RelayError",
    "ConfigurationError",
    "InvalidRequestError",
    "MethodNotAllowedError",
    "MissingAudioError",
    "AuthorizationError",
    "UploadTooLargeError",
    "DecodeError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "UnclassifiedError",
]
