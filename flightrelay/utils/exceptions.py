from typing import Any, Dict, Optional
from fastapi import status


class AppException(Exception):
    """Base application exception class."""

    error_code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code to return
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppException):
    """Exception for data validation errors."""

    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation error",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            status_code=422,
            details=details
        )


class InvalidSubscriptionError(ValidationException):
    """Raised when a subscription would be stored without a user or flight."""

    error_code = "INVALID_SUBSCRIPTION"


class ChannelConfigError(AppException):
    """Raised when a messaging channel is missing required configuration."""

    error_code = "CHANNEL_CONFIG_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class ExternalServiceException(AppException):
    """Exception for external service integration errors."""

    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        service_name: str,
        message: str = "External service error",
        status_code: int = status.HTTP_502_BAD_GATEWAY,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize external service exception.

        Args:
            service_name: Name of the external service
            message: Error message
            status_code: HTTP status code
            details: Additional error details
        """
        error_details = details or {}
        error_details["service"] = service_name

        super().__init__(
            message=message,
            status_code=status_code,
            details=error_details
        )
        self.service_name = service_name


class ProviderError(ExternalServiceException):
    """The aviation data provider could not be reached or answered with an error."""

    error_code = "PROVIDER_ERROR"

    def __init__(self, message: str = "Flight data provider error", details: Optional[Dict[str, Any]] = None):
        super().__init__(service_name="aviationstack", message=message, details=details)


class TransportError(ExternalServiceException):
    """A notification could not be delivered through the messaging transport."""

    error_code = "TRANSPORT_ERROR"

    def __init__(self, message: str = "Message delivery failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(service_name="twilio", message=message, details=details)


class ModelAPIError(ExternalServiceException):
    """The LLM backend failed or returned an unusable response."""

    error_code = "MODEL_API_ERROR"

    def __init__(self, message: str = "Model API error", details: Optional[Dict[str, Any]] = None):
        super().__init__(service_name="llm", message=message, details=details)


class ClassifierError(ExternalServiceException):
    """The fallback classifier failed or produced output outside its schema."""

    error_code = "CLASSIFIER_ERROR"

    def __init__(self, message: str = "Intent classification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(service_name="intent-classifier", message=message, details=details)
