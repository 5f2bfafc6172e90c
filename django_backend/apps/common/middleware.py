import logging
import time

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class AccessLogMiddleware(MiddlewareMixin):
    """
    Logs one line per request with method, path, status and duration.
    Server errors are logged at error level, client errors at warning.
    """

    def process_request(self, request):
        request._access_log_started = time.monotonic()

    def process_response(self, request, response):
        started = getattr(request, "_access_log_started", None)
        duration_ms = (time.monotonic() - started) * 1000 if started is not None else 0.0
        user = getattr(request, "user", None)
        user_id = getattr(user, "id", None) if user is not None and user.is_authenticated else None

        message = f"{request.method} {request.path} {response.status_code} {duration_ms:.1f}ms user={user_id}"
        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)
        return response
