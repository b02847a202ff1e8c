"""
Application error taxonomy.

Every error maps to an HTTP status and a stable ``code`` that is returned to the
client as ``{"message": ..., "error": code}``.
"""
from fastapi import status
from typing import Optional


class AppError(Exception):
    """Base class for errors rendered as JSON responses"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "InternalError"
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.code}


class ParseError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ParseError"
    default_message = "Error parsing form data"


class ValidationError(AppError):
    """A required field is missing or blank"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "ValidationError"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class DuplicateError(AppError):
    """Uniqueness violation on email or mobile number"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "DuplicateError"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} already exists")


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NotFoundError"
    default_message = "Not found"


class UploadError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "UploadError"
    default_message = "Error uploading file"


class InternalError(AppError):
    pass
