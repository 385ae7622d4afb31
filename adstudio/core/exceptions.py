"""
Custom exceptions for AdStudio API.
Provides consistent error handling across the application.

Every exception carries the HTTP status it maps to; the handler registered in
``adstudio.main`` renders them as ``{"error": message}``.
"""
import httpx
from fastapi import status


class AdStudioException(Exception):
    """Base exception for AdStudio"""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class NotFoundError(AdStudioException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message)


class AlreadyExistsError(AdStudioException):
    """Resource already exists"""
    def __init__(self, resource: str = "Resource", field: str = None, value: str = None):
        if field and value:
            message = f"{resource} with {field} '{value}' already exists"
        else:
            message = f"{resource} already exists"
        super().__init__(message)


class UnauthorizedError(AdStudioException):
    """Authentication failed"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


class ValidationError(AdStudioException):
    """Validation failed"""
    def __init__(self, message: str = "Validation failed", field: str = None):
        if field:
            message = f"Validation failed for field '{field}': {message}"
        super().__init__(message)


class ConflictError(AdStudioException):
    """Operation conflicts with in-flight work"""
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(AdStudioException):
    """A required setting is missing"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, setting: str):
        super().__init__(f"{setting} not configured")


class UpstreamError(AdStudioException):
    """External service answered with an error"""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, service: str = "External service", message: str = None, status_code: int = None):
        msg = f"{service} call failed"
        if message:
            msg = f"{msg}: {message}"
        if status_code:
            self.status_code = status_code
        super().__init__(msg)


class RateLimitError(UpstreamError):
    """Upstream rate limit (429)"""
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, service: str = "External service"):
        AdStudioException.__init__(self, f"{service} rate limit exceeded. Please try again later.")


class QuotaExceededError(UpstreamError):
    """Upstream credits exhausted (402)"""
    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, service: str = "External service"):
        AdStudioException.__init__(self, f"{service} usage limit reached. Please add credits to continue.")


class TransportError(AdStudioException):
    """Network failure before an upstream answer was received"""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, service: str = "External service", message: str = None):
        msg = f"Failed to reach {service}"
        if message:
            msg = f"{msg}: {message}"
        super().__init__(msg)


def is_transport_error(err: BaseException) -> bool:
    """True for network-level failures (ours or httpx's), as opposed to upstream answers."""
    if isinstance(err, (TransportError, httpx.TransportError)):
        return True
    message = str(err).lower()
    return "failed to fetch" in message or "failed to send a request" in message


def raise_for_upstream_status(service: str, status_code: int, body: str = "") -> None:
    """Map a non-2xx upstream status onto the exception taxonomy."""
    if status_code < 400:
        return
    if status_code == 429:
        raise RateLimitError(service)
    if status_code == 402:
        raise QuotaExceededError(service)
    if status_code in (401, 403):
        raise UnauthorizedError(f"{service} rejected our credentials")
    raise UpstreamError(service, body or f"HTTP {status_code}")


# Helpers kept for call sites that read better as statements
def raise_not_found(resource: str = "Resource", resource_id: str = None):
    """Raise NotFoundError"""
    raise NotFoundError(resource, resource_id)


def raise_already_exists(resource: str = "Resource", field: str = None, value: str = None):
    """Raise AlreadyExistsError"""
    raise AlreadyExistsError(resource, field, value)


def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise UnauthorizedError"""
    raise UnauthorizedError(message)


def raise_validation_error(message: str = "Validation failed", field: str = None):
    """Raise ValidationError"""
    raise ValidationError(message, field)
