# core/middleware.py
"""
REQUEST MIDDLEWARE - API request logging and last-resort JSON error handling
"""
import logging
import time

from django.conf import settings
from django.http import JsonResponse

from .exceptions import SchoolManagementException

logger = logging.getLogger(__name__)


# ============ EXCEPTION HANDLING MIDDLEWARE ============

class ExceptionHandlingMiddleware:
    """
    Turns registrar errors raised outside DRF views (admin actions, plain
    Django views) into the same JSON body the API returns.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if isinstance(exception, SchoolManagementException):
            log = logger.error if exception.status_code >= 500 else logger.warning
            log(f"{exception.error_code} on {request.method} {request.path}: {exception}")
            return JsonResponse(exception.to_payload(), status=exception.status_code)

        # Django's debug page in development
        if settings.DEBUG:
            return None

        logger.error(f"Unhandled error on {request.method} {request.path}: {exception}", exc_info=True)
        return JsonResponse({
            'error': 'SERVER_ERROR',
            'message': "The registrar could not complete the request.",
            'details': {},
        }, status=500)


# ============ REQUEST LOGGING MIDDLEWARE ============

class RequestLoggingMiddleware:
    """Logs API calls with their status and duration."""

    API_PREFIX = '/api/'
    SLOW_REQUEST_SECONDS = 2.0

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith(self.API_PREFIX):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        elapsed = time.monotonic() - started

        user = getattr(request, 'user', None)
        username = user.get_username() if user is not None and user.is_authenticated else 'anonymous'
        message = (
            f"{request.method} {request.path} -> {response.status_code} "
            f"in {elapsed * 1000:.0f}ms ({username})"
        )
        if elapsed > self.SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request: {message}")
        else:
            logger.debug(message)
        return response
