"""
Domain exception taxonomy and the DRF exception handler that maps it onto
structured error responses.

Every domain failure carries a machine-stable ``kind`` and a human message. The
handler renders them as ``{"error": {"kind": ..., "message": ...}}``; errors
raised by DRF itself keep DRF's own response shape.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base exception for marketplace domain errors."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request could not be processed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {"kind": self.kind, "message": self.message}


class NotFoundError(MarketplaceError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource was not found."


class ValidationFailed(MarketplaceError):
    kind = "validation_failed"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request is malformed or incomplete."


class NotAuthorized(MarketplaceError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action."


class ConflictError(MarketplaceError):
    """
    Raised when the request is well formed but conflicts with current state:
    illegal transitions, lost assignment races, exhausted availability.

    Rendered as 400 to match the published REST contract.
    """

    kind = "conflict"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request conflicts with the current state."


class UpstreamUnavailable(MarketplaceError):
    """Notification or broadcast transport failed. Logged, never returned to clients."""

    kind = "upstream_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "An upstream service is unavailable."


def marketplace_exception_handler(exc, context):
    """
    DRF exception handler for the marketplace API.
    """
    if isinstance(exc, MarketplaceError):
        request = context.get("request")
        view = context.get("view")
        logger.info(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc.message}",
            extra={
                "kind": exc.kind,
                "path": getattr(request, "path", None),
                "method": getattr(request, "method", None),
            },
        )
        return Response({"error": exc.as_dict()}, status=exc.status_code)

    response = exception_handler(exc, context)

    if response is None:
        logger.exception(f"Unhandled exception while processing request: {exc}")

    return response
