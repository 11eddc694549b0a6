"""
Service errors raised by the store, the provider client and the task
coordinator. Each carries the HTTP status it is reported with; the
application turns them into ``{"message": ...}`` responses in one place.
"""


class ServiceError(Exception):
    """Base error with a client-facing message and an HTTP status."""

    status_code = 500

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Missing or malformed caller input."""

    status_code = 400


class NotFound(ServiceError):
    status_code = 404


class UpstreamError(ServiceError):
    """The provider could not be reached or answered with an error."""

    status_code = 500

    def __init__(self, message: str = "Upstream request failed", provider_message: str | None = None):
        self.provider_message = provider_message
        super().__init__(message)


class InvalidUpstreamResponse(UpstreamError):
    """The provider answered, but without the task entry we need."""


class StoreError(ServiceError):
    status_code = 500


class RateLimited(ServiceError):
    status_code = 429

    def __init__(self, message: str = "Too many requests", retry_after: int = 10):
        self.retry_after = retry_after
        super().__init__(message)


class PayloadTooLarge(ServiceError):
    status_code = 413
