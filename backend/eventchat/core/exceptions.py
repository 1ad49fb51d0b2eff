"""
Domain errors raised by the service layer.

Each error carries the HTTP status it is surfaced with; the handlers in
``eventchat.main`` turn them into ``{"detail": message}`` responses.
"""
from fastapi import status


class AppError(Exception):
    """Base class for expected business-rule failures."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed, missing or out-of-range input."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    """Referenced entity does not exist or does not belong to the caller."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Duplicate follow, self-follow, full event, taken username/email."""
    status_code = status.HTTP_409_CONFLICT


class AuthorizationError(AppError):
    """Action attempted by someone who does not own the resource."""
    status_code = status.HTTP_403_FORBIDDEN


class UpstreamUnavailableError(AppError):
    """A third-party collaborator (geocoder, image store) failed."""
    status_code = status.HTTP_502_BAD_GATEWAY
