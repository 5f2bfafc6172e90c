"""
Service-layer error taxonomy.

Services raise these exceptions; ``apps.common.exception_handler`` maps them
onto HTTP responses. Only ``rest_framework.status`` may be imported here: DRF
loads the authentication class, which depends on this module, while
``rest_framework.views`` is still initializing.
"""
from rest_framework import status


class ServiceError(Exception):
    """Base class for errors raised by the service layer"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class AccessDenied(ServiceError):
    """The requester cannot see the project, task or team at all"""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class PermissionDenied(ServiceError):
    """The resource is visible but the requester's role is insufficient"""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"
