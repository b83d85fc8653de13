"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from storefront.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for errors that reach the client as a JSON error body.

    Routes translate service exceptions into subclasses of this; the
    middleware below renders them.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            details: Optional additional error details.
        """
        self.message = message
        self.details = details
        super().__init__(message)


class BadRequestError(APIError):
    """The request cannot be processed as sent (unknown coupon, product or delivery method)."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "bad_request"


class NotFoundError(APIError):
    """Cart or order not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"


class ConflictError(APIError):
    """Order is not in a state that allows the request."""

    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"


class PaymentGatewayError(APIError):
    """Paystack failed or rejected the request."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "payment_gateway_error"

    def __init__(self, message: str, gateway_status: int | None = None) -> None:
        details = None
        if gateway_status is not None:
            details = [{"loc": ["paystack"], "msg": f"HTTP {gateway_status}", "type": "gateway_status"}]
        super().__init__(message, details=details)


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional error details.
        request_id: Optional request ID for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    error_response = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Render APIError subclasses and unexpected exceptions as JSON errors.

    Unexpected errors are logged with their stack trace; the client only
    sees a generic message.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        return await call_next(request)

    except APIError as e:
        log = logger.error if e.status_code >= 500 else logger.warning
        log(
            "%s on %s %s: %s",
            e.error_type,
            request.method,
            request.url.path,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except HTTPException as e:
        logger.warning(
            "HTTP exception: %s - %s",
            e.status_code,
            e.detail,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
