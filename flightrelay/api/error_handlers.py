from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flightrelay.utils.exceptions import AppException, ExternalServiceException
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Configure exception handlers for the application.

    The WhatsApp webhook answers TwiML on every path and never reaches
    these; they cover the JSON endpoints.
    """
    @app.exception_handler(ExternalServiceException)
    async def handle_external_service_exception(request: Request, exc: ExternalServiceException) -> JSONResponse:
        return create_error_response(
            request=request,
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=f"{exc.service_name} error: {exc.message}",
            details=exc.details
        )

    @app.exception_handler(AppException)
    async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
        return create_error_response(
            request=request,
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
            details=exc.details
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return create_error_response(
            request=request,
            status_code=422,
            error_code="VALIDATION_ERROR",
            message="Validation error",
            details={"errors": exc.errors()}
        )

    @app.exception_handler(Exception)
    async def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
        """
        Handles all other Exception instances.
        Logs the error and returns a generic error response.
        """
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

        return create_error_response(
            request=request,
            status_code=500,
            error_code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred",
            details=None
        )


def create_error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """
    Creates a standardized error response.
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.error(
        f"API error: {error_code} - {message}",
        extra={"status_code": status_code, "error_code": error_code, "details": details}
    )

    response_data = {
        "error": {
            "code": error_code,
            "message": message,
            "correlation_id": correlation_id
        }
    }

    if details:
        response_data["error"]["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=response_data
    )
