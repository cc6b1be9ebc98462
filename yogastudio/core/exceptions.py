"""
Exceptions the API turns into JSON error bodies.

Every subclass fixes its HTTP status and machine-readable code as class
attributes; the handler in error_handlers.py reads them back.
"""

from typing import Any, Dict, Optional


class BaseAppException(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class AuthenticationError(BaseAppException):
    status_code = 401
    error_code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication failed", details=None):
        super().__init__(message, details)


class AuthorizationError(BaseAppException):
    status_code = 403
    error_code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "Access denied", details=None):
        super().__init__(message, details)


class ValidationError(BaseAppException):
    status_code = 400
    error_code = "VALIDATION_ERROR"


class DuplicateError(BaseAppException):
    status_code = 409
    error_code = "DUPLICATE_ERROR"

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            {"resource": resource, "field": field, "value": value},
        )


class NotFoundError(BaseAppException):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any = None):
        details: Dict[str, Any] = {"resource": resource}
        message = f"{resource} not found"
        if identifier is not None:
            details["identifier"] = str(identifier)
            message = f"{resource} '{identifier}' not found"
        super().__init__(message, details)


# Booking rules. All of them answer 409 so the portal can show the message as is.


class BusinessLogicError(BaseAppException):
    status_code = 400
    error_code = "BUSINESS_LOGIC_ERROR"


class SessionFullError(BusinessLogicError):
    status_code = 409
    error_code = "SESSION_FULL"

    def __init__(self, session_id: int, capacity: int, booked: int):
        super().__init__(
            "No seats left in this class",
            {"session_id": session_id, "capacity": capacity, "booked": booked},
        )


class DuplicateBookingError(BusinessLogicError):
    status_code = 409
    error_code = "DUPLICATE_BOOKING"

    def __init__(self, session_id: int, client_id: int):
        super().__init__(
            "Client is already booked for this class",
            {"session_id": session_id, "client_id": client_id},
        )


class NoActiveSubscriptionError(BusinessLogicError):
    status_code = 409
    error_code = "NO_ACTIVE_SUBSCRIPTION"

    def __init__(self, client_id: int):
        super().__init__(
            "No active subscription or no visits left", {"client_id": client_id}
        )


class CancellationWindowViolationError(BusinessLogicError):
    status_code = 409
    error_code = "CANCELLATION_WINDOW"

    def __init__(self, booking_id: int, minutes_left: int, window_minutes: int):
        super().__init__(
            f"Cancellation is not possible less than {window_minutes} minutes before the class",
            {
                "booking_id": booking_id,
                "minutes_left": minutes_left,
                "window_minutes": window_minutes,
            },
        )


class InvalidStatusTransitionError(BusinessLogicError):
    status_code = 409
    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, booking_id: int, current: str, requested: str):
        super().__init__(
            f"Booking cannot change from '{current}' to '{requested}'",
            {"booking_id": booking_id, "current": current, "requested": requested},
        )


# Infrastructure


class DatabaseError(BaseAppException):
    error_code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed", details=None):
        super().__init__(message, details)


class DatabaseConnectionError(DatabaseError):
    status_code = 503
    error_code = "DATABASE_CONNECTION_ERROR"


class DatabaseTimeoutError(DatabaseError):
    status_code = 504
    error_code = "DATABASE_TIMEOUT"

    def __init__(self, operation: str, timeout: int):
        super().__init__(
            f"'{operation}' timed out after {timeout}s",
            {"operation": operation, "timeout": timeout},
        )


class DatabaseIntegrityError(DatabaseError):
    status_code = 409
    error_code = "DATABASE_INTEGRITY_ERROR"

    def __init__(self, constraint: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Constraint violated: {constraint}",
            {"constraint": constraint, **(details or {})},
        )


class ConfigurationError(BaseAppException):
    error_code = "CONFIGURATION_ERROR"

    def __init__(self, parameter: str, message: Optional[str] = None):
        super().__init__(
            message or f"Setting '{parameter}' is missing or invalid",
            {"parameter": parameter},
        )
