"""
Application exceptions.
Every error a service raises carries the HTTP status and the machine readable
code the API reports for it. Routes translate them into HTTPException.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base application exception."""

    error_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.message!r})"


class ValidationException(AppException):
    """Input failed validation. details maps field name to problem."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class AuthenticationException(AppException):
    error_code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class AuthorizationException(AppException):
    error_code = "AUTHORIZATION_ERROR"
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)


class NotFoundException(AppException):
    """A board, vault, asset or other record does not exist (or is soft deleted)."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": resource_id}
        )


class ConflictException(AppException):
    """Duplicate slug, pending registration, repeated vote."""

    error_code = "CONFLICT"
    status_code = 409


class BusinessRuleException(AppException):
    """Request is well formed but violates a workflow rule (expired invitation, closed vote)."""

    error_code = "BUSINESS_RULE_VIOLATION"
    status_code = 422


class StorageException(AppException):
    """The object store refused an upload, delete or signing request."""

    error_code = "STORAGE_ERROR"
    status_code = 502


class DatabaseException(AppException):
    error_code = "DATABASE_ERROR"
    status_code = 500
