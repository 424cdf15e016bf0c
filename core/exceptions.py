"""
Centralized exception hierarchy for domain-specific errors.

Route handlers translate these into HTTP responses through
``core.api.api_route``; background processing logs them and moves on.
"""


class FieldTrackError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(FieldTrackError):
    """Exception raised when data validation fails."""


class ExternalServiceError(FieldTrackError):
    """Exception raised when service calls fail."""


class RateLimitError(ExternalServiceError):
    """Exception raised when rate limits are exceeded."""


class ResourceNotFoundError(FieldTrackError):
    """Exception raised when a requested resource is not found."""


class DuplicateResourceError(FieldTrackError):
    """Exception raised when attempting to create a duplicate resource."""


class LeaseUnavailableError(FieldTrackError):
    """Exception raised when the per-engineer lease backend cannot be reached."""


FieldTrackException = FieldTrackError
ValidationException = ValidationError
ExternalServiceException = ExternalServiceError
RateLimitException = RateLimitError
ResourceNotFoundException = ResourceNotFoundError
DuplicateResourceException = DuplicateResourceError
