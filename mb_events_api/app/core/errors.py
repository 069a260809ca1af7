"""
Error taxonomy shared by services and endpoints.

Services raise subclasses of ``ServiceError``; the exception handlers
registered in ``main.create_app`` render them as the standard failure
envelope ``{"success": false, "message": ...}`` with the status code
carried by the exception class.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class UpstreamError(ServiceError):
    """A collaborator outside the process (media host, mail server) failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service failed"
