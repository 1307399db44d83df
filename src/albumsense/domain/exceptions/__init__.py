"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so callers can inspect it
    # without parsing str(exception). Never raise this directly - use a subclass!
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Example:
        raise ValidationError("Album path must be absolute")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Example:
        raise ConfigurationError("Last.fm API key not configured")
    """

    pass


class ExternalServiceError(DomainException):
    """External service call failed.

    This is the "transport failure" of the refresh pipeline: timeouts,
    connection errors, 5xx responses, undecodable bodies and Last.fm error
    payloads other than "not found". It is NOT raised when the service simply
    has no record - that is a ``None`` result.

    Example:
        raise ExternalServiceError("Last.fm API error: 503 Service Unavailable")
    """

    def __init__(
        self,
        message: str,
        service: str = "lastfm",
        status_code: int | None = None,
        error_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.error_code = error_code


class RateLimitExceededError(ExternalServiceError):
    """External service rate limit was exceeded.

    Example:
        raise RateLimitExceededError("Last.fm rate limit exceeded")
    """

    pass


class OperationCancelledError(DomainException):
    """A refresh attempt was cancelled through its cancellation token.

    Callers should treat this as neither success nor failure - nothing was
    committed.
    """

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)


class LocalMetadataWriteError(DomainException):
    """Writing the local metadata copy failed.

    The provider state record is not updated when this is raised, so the
    album is picked up again on the next pass.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to write local metadata to {path}: {reason}")
        self.path = path
        self.reason = reason


__all__ = [
    "DomainException",
    "ValidationError",
    "ConfigurationError",
    "ExternalServiceError",
    "RateLimitExceededError",
    "OperationCancelledError",
    "LocalMetadataWriteError",
]
