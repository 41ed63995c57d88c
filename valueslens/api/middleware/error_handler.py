"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from valueslens.assessment.errors import (
    AssessmentError,
    AssessmentValidationError,
    PreconditionError,
)
from valueslens.core.supabase import StorageUnavailableError
from valueslens.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors.

    Use this class to raise application-specific errors that should
    be returned to the client with a specific status code and message.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code to return.
            error_type: Error category/type for client handling.
            details: Optional additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class ServiceUnavailableError(APIError):
    """A collaborator the request depends on is not available."""

    def __init__(self, message: str = "Service unavailable", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_type="service_unavailable",
            details=details,
        )


def assessment_error_to_api_error(error: AssessmentError) -> APIError:
    """Map an engine error to a 422 carrying the broken constraint or phase."""
    if isinstance(error, AssessmentValidationError):
        details = [{"loc": [error.constraint], "msg": error.message, "type": "assessment_validation"}]
        error_type = "assessment_validation_error"
    elif isinstance(error, PreconditionError):
        details = [{"loc": [error.required_phase.value], "msg": error.message, "type": "precondition"}]
        error_type = "precondition_failed"
    else:
        details = None
        error_type = "assessment_error"
    return APIError(
        message=error.message,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_type=error_type,
        details=details,
    )


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
    """Middleware to catch and format all exceptions.

    Ensures consistent error response format across the application.
    Logs full stack traces for debugging while returning safe messages to clients.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    # Extract request ID if present (can be set by upstream middleware/load balancer)
    request_id = request.headers.get("X-Request-ID")

    try:
        response = await call_next(request)
        return response

    except AssessmentError as e:
        api_error = assessment_error_to_api_error(e)
        logger.warning(
            "Assessment error: %s - %s",
            api_error.error_type,
            api_error.message,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type=api_error.error_type,
            message=api_error.message,
            status_code=api_error.status_code,
            details=api_error.details,
            request_id=request_id,
        )

    except StorageUnavailableError as e:
        api_error = ServiceUnavailableError(str(e))
        logger.warning("Storage unavailable: %s", api_error.message, extra={"request_id": request_id})
        return create_error_response(
            error_type=api_error.error_type,
            message=api_error.message,
            status_code=api_error.status_code,
            request_id=request_id,
        )

    except APIError as e:
        # Application-specific errors - log at warning level
        logger.warning(
            "API error: %s - %s",
            e.error_type,
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
        # FastAPI HTTP exceptions
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
        # Unexpected exceptions - log full stack trace
        logger.error(
            "Unhandled exception: %s\n%s",
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
