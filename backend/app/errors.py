"""
Rail Complaint Desk - Typed Application Errors

Services raise these; the HTTP layer renders them verbatim with their
status code. Anything else that escapes a handler is an internal error.
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for all errors rendered to the caller as-is."""

    status_code = 500
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "message": self.message,
            "statusCode": self.status_code,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"


class ValidationError(AppError):
    """Malformed input, with optional field-level messages."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class UnauthorizedError(AppError):
    """Missing, invalid or expired credential, or an inactive account."""

    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class TokenExpiredError(UnauthorizedError):
    """Signature is valid but the token is past its expiry."""

    def __init__(self, message: str = "Token expired"):
        super().__init__(message)


class TokenInvalidError(UnauthorizedError):
    """Bad signature, malformed token, or a token of the wrong type."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class InternalError(AppError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
