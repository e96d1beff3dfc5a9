"""Custom exception classes for the application.

Defines domain-specific exceptions that can be raised throughout the
application and handled consistently by exception handlers.
"""

from typing import Optional, Any, Dict


class AppException(Exception):
    """Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional additional error details.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize application exception.

        Args:
            message: Error message.
            status_code: HTTP status code (default: 500).
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        """Initialize not found error.

        Args:
            resource: Type of resource (e.g., 'Recipe', 'Review').
            identifier: ID or identifier that was not found.
        """
        message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, status_code=404, details={"resource": resource, "id": identifier})


class ValidationError(AppException):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error.

        Args:
            message: Validation error message.
            field: Optional field name that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class PermissionDeniedError(AppException):
    """Exception raised when the acting user may not perform an operation."""

    def __init__(self, message: str, user_id: Optional[int] = None):
        """Initialize permission error.

        Args:
            message: Why the operation was refused.
            user_id: Optional id of the acting user.
        """
        details = {"user_id": user_id} if user_id is not None else {}
        super().__init__(message, status_code=403, details=details)


class IntegrityError(AppException):
    """Exception raised when a write violates a key or uniqueness constraint."""

    def __init__(self, message: str, table: Optional[str] = None):
        """Initialize integrity error.

        Args:
            message: Constraint error message.
            table: Optional table the rejected write targeted.
        """
        details = {"table": table} if table else {}
        super().__init__(message, status_code=409, details=details)


class UnavailableError(AppException):
    """Exception raised when the database cannot be reached at all.

    This is the only store failure that aborts an import or a mutation and
    reaches the caller.
    """

    def __init__(self, message: str = "Database is unavailable", operation: Optional[str] = None):
        """Initialize unavailable error.

        Args:
            message: Error message.
            operation: Optional operation that was running.
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=503, details=details)
