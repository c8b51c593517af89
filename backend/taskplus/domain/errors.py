"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response envelope"""
        error: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"ok": False, "error": error}


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Session token missing, invalid, or expired"""
    error_code = "UNAUTHENTICATED"
    http_status = 401


class InvalidCredentialsError(AuthenticationError):
    """Identifier/password pair rejected"""
    error_code = "INVALID_CREDENTIALS"


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "FORBIDDEN"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Specific permission denied"""

    def __init__(self, required: Any, message: str = "Insufficient permissions"):
        super().__init__(message, details={"required": required})
        self.required = required


class PageAccessDeniedError(AuthorizationError):
    """Permission present but a page or section restriction was violated"""
    error_code = "PAGE_ACCESS_DENIED"

    def __init__(self, permission: str, page: int, section: Optional[str] = None):
        super().__init__(
            "Access denied to this page or section",
            details={"permission": permission, "page": page, "section": section}
        )


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed; carries every field error found"""
    error_code = "VALIDATION_FAILED"
    http_status = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details=details)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["error"]["errors"] = self.errors
        return body


class InvalidRegistryKeysError(ValidationError):
    """Role or permission keys not present in the registry"""
    error_code = "INVALID_REGISTRY_KEYS"


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class UserNotFoundError(NotFoundError):
    """User not found"""
    error_code = "USER_NOT_FOUND"


class TicketNotFoundError(NotFoundError):
    """Ticket not found"""
    error_code = "TICKET_NOT_FOUND"


class FollowUpNotFoundError(NotFoundError):
    """Follow-up not found"""
    error_code = "FOLLOW_UP_NOT_FOUND"


class ReviewNotFoundError(NotFoundError):
    """Review not found"""
    error_code = "REVIEW_NOT_FOUND"


class NotificationNotFoundError(NotFoundError):
    """Notification not found for this user"""
    error_code = "NOTIFICATION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Duplicate key or referential-integrity violation"""
    error_code = "CONFLICT"
    http_status = 409


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


class InvalidTransitionError(ConflictError):
    """Ticket status change not allowed by the lifecycle"""
    error_code = "INVALID_TRANSITION"


# Internal
class InternalError(DomainError):
    """Unexpected failure"""
    error_code = "INTERNAL_ERROR"
    http_status = 500
