"""
Domain error taxonomy.

Services raise these; a single exception handler in ``eventhub.main``
renders them as ``{"message": ..., "error": ...}`` with the mapped
HTTP status code. Business-rule violations are always raised before
any write is issued.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Any = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found")
        self.resource = resource


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Action not allowed"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Authentication required"


class InvalidStateTransition(AppError):
    """Raised when an action is not legal from the entity's current status."""

    status_code = 400

    def __init__(self, action: str, current: str, required: str):
        super().__init__(
            f"Cannot {action.replace('_', ' ')} an event in status '{current}'; "
            f"required: {required}",
            error={"action": action, "current_status": current, "required": required},
        )
        self.action = action
        self.current = current


class DuplicateRegistration(AppError):
    status_code = 400
    default_message = "You are already registered for this event"


class DuplicateName(AppError):
    status_code = 400

    def __init__(self, resource: str, name: str):
        super().__init__(f"A {resource.lower()} named '{name}' already exists")
        self.resource = resource
        self.name = name


class CapacityExceeded(AppError):
    status_code = 400
    default_message = "This event is full"


class RegistrationClosed(AppError):
    status_code = 400
    default_message = "This event is not open for registration"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
