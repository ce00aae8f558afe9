"""
Error taxonomy shared by the access gate, the scope filter and the route handlers.

Each error is an HTTPException so handlers and dependencies raise it directly;
`code` is a stable machine-readable identifier rendered next to the message.
"""
from typing import Optional
from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code_default = "SERVER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code_default, detail=message, headers=headers)
        self.code = code or self.code_default

    @property
    def message(self) -> str:
        return self.detail


class Unauthenticated(AppError):
    """Credential absent, malformed, expired, or pointing at an unknown/inactive account."""
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "UNAUTHENTICATED"

    def __init__(self, message: str = "Could not validate credentials", code: Optional[str] = None):
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    """Role not in the route's allow-list, or target record outside the caller's scope."""
    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "FORBIDDEN"


class NotFound(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code_default = "NOT_FOUND"


class ValidationFailed(AppError):
    """Input passed schema validation but violates a business rule."""
    status_code_default = status.HTTP_400_BAD_REQUEST
    code_default = "VALIDATION_FAILED"
