"""
Custom Exceptions for the Dormitory Billing Service

This module defines custom exception classes used throughout the application
for better error handling and debugging.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Billing errors
    CONFLICT = "CONFLICT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    ALREADY_PAID = "ALREADY_PAID"
    INVALID_STATE = "INVALID_STATE"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Lookup / Validation Exceptions
# ========================================

class NotFoundError(BaseAppException):
    """Raised when a requested entity (or its non-deleted counterpart) is missing"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details, 422)


# ========================================
# Billing Exceptions
# ========================================

class ConflictError(BaseAppException):
    """Duplicate bill for a period, duplicate utility record, or a repeated transition"""

    def __init__(
        self,
        message: str = "Resource already exists",
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.CONFLICT,
    ):
        super().__init__(message, error_code, details, 400)


class InvalidAmountError(BaseAppException):
    """Payment amount exceeds the remaining balance of the bill"""

    def __init__(self, amount: Any, remaining: Any, message: Optional[str] = None):
        message = message or f"Payment amount exceeds remaining amount. Remaining: {remaining}"
        details = {"amount": str(amount), "remaining": str(remaining)}
        super().__init__(message, ErrorCode.INVALID_AMOUNT, details, 400)


class AlreadyPaidError(BaseAppException):
    """Tenant submitted a payment for a bill that is already paid"""

    def __init__(self, bill_id: str):
        super().__init__(
            "This bill is already paid",
            ErrorCode.ALREADY_PAID,
            {"bill_id": bill_id},
            400,
        )


# ========================================
# Authentication & Authorization Exceptions
# ========================================

class AuthenticationError(BaseAppException):
    """Missing or invalid bearer token"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, {}, 401)


class ForbiddenError(BaseAppException):
    """Role or ownership check failed"""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, ErrorCode.INSUFFICIENT_PERMISSIONS, {}, 403)


# ========================================
# Infrastructure Exceptions
# ========================================

class RepositoryError(BaseAppException):
    """Database operation failed"""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, ErrorCode.DATABASE_ERROR, {}, 500)


class ConfigurationError(BaseAppException):
    """Required external credentials or settings are missing"""

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details, 500)


class ExternalServiceError(BaseAppException):
    """An external API (LINE messaging) call failed"""

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        details: Dict[str, Any] = {"service": service}
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__(
            message or f"External service {service} is unavailable",
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            details,
            502,
        )
