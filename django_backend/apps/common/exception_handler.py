"""
DRF exception handler that turns service-layer errors into JSON responses,
so views never translate errors themselves.
"""
import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.common.errors import ServiceError

logger = logging.getLogger(__name__)


def service_exception_handler(exc, context):
    """Map ServiceError subclasses to ``{"error": message}``; defer the rest to DRF"""
    if isinstance(exc, ServiceError):
        view = context.get("view")
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}"
        )
        return Response({"error": exc.message}, status=exc.status_code)

    return exception_handler(exc, context)
