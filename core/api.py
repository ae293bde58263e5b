# core/api.py
"""
DRF exception handler - turns SchoolManagementException into JSON with a stable error code.
"""
import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

from .exceptions import SchoolManagementException

logger = logging.getLogger(__name__)


def exception_handler(exc, context):
    """Configured as REST_FRAMEWORK['EXCEPTION_HANDLER']."""
    if isinstance(exc, SchoolManagementException):
        if exc.status_code >= 500:
            logger.error(f"System exception: {exc.error_code} {exc}", exc_info=exc)
        else:
            logger.warning(f"Business exception: {exc.error_code} {exc}")

        set_rollback()
        return Response(exc.to_payload(), status=exc.status_code)

    return drf_exception_handler(exc, context)
