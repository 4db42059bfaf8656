"""
Custom Exception Classes for the CareerOS Audit Service
"""
from typing import Dict, Any, Type
from fastapi import HTTPException


class CareerOSBaseException(Exception):
    """Base exception for the audit service"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(CareerOSBaseException):
    """Raised when client input is rejected (wrong media type, missing field)"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class UnprocessableContentError(CareerOSBaseException):
    """Raised when a document was accepted but yielded no usable content"""

    def __init__(self, message: str, document_name: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if document_name:
            details['document_name'] = document_name
        super().__init__(message, error_code="UNPROCESSABLE_CONTENT", details=details, **kwargs)


class DatabaseError(CareerOSBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ModelError(CareerOSBaseException):
    """Raised when AI model operations fail"""

    def __init__(self, message: str, model_name: str = None, model_type: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if model_name:
            details['model_name'] = model_name
        if model_type:
            details['model_type'] = model_type
        super().__init__(message, error_code="MODEL_ERROR", details=details, **kwargs)


class ProcessingError(CareerOSBaseException):
    """Raised when document processing fails"""

    def __init__(self, message: str, document_name: str = None, document_type: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if document_name:
            details['document_name'] = document_name
        if document_type:
            details['document_type'] = document_type
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


class ConfigurationError(CareerOSBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class RateLimitError(CareerOSBaseException):
    """Raised when an upstream rate limit is exceeded"""

    def __init__(self, message: str, service_name: str = None, reset_at: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if service_name:
            details['service_name'] = service_name
        if reset_at:
            details['reset_at'] = reset_at
        super().__init__(message, error_code="RATE_LIMIT_ERROR", details=details, **kwargs)


class ExternalServiceError(CareerOSBaseException):
    """Raised when external service calls fail"""

    def __init__(self, message: str, service_name: str = None, status_code: int = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if service_name:
            details['service_name'] = service_name
        if status_code:
            details['status_code'] = status_code
        super().__init__(message, error_code="EXTERNAL_SERVICE_ERROR", details=details, **kwargs)


class PipelineTimeoutError(CareerOSBaseException):
    """Raised when a request exceeds its overall deadline"""

    def __init__(self, message: str, timeout: float = None, stage: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if timeout is not None:
            details['timeout_seconds'] = timeout
        if stage:
            details['stage'] = stage
        super().__init__(message, error_code="PIPELINE_TIMEOUT", details=details, **kwargs)


STATUS_CODE_MAPPING: Dict[Type[CareerOSBaseException], int] = {
    ValidationError: 400,
    ConfigurationError: 400,
    UnprocessableContentError: 422,
    RateLimitError: 429,
    DatabaseError: 500,
    ModelError: 500,
    ProcessingError: 500,
    ExternalServiceError: 502,
    PipelineTimeoutError: 504,
}


def map_to_http_exception(exc: CareerOSBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""
    status_code = STATUS_CODE_MAPPING.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager that wraps foreign exceptions raised inside an operation"""

    def __init__(self, operation: str, logger=None, wrap_as: Type[CareerOSBaseException] = None, **context):
        self.operation = operation
        self.logger = logger
        self.wrap_as = wrap_as
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        # Re-raise our own exceptions and cancellations as-is
        if isinstance(exc_val, CareerOSBaseException) or not isinstance(exc_val, Exception):
            return False

        if self.wrap_as is DatabaseError:
            raise DatabaseError(
                f"Database error in {self.operation}: {exc_val}",
                operation=self.operation,
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        if self.wrap_as is not None:
            raise self.wrap_as(
                f"{self.operation} failed: {exc_val}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {exc_val}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        raise ProcessingError(
            f"Processing error in {self.operation}: {exc_val}",
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
