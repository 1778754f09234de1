"""
Exception types raised by the service layer and rendered by the API.
"""
from typing import Optional


class APIError(Exception):
    """Base class for errors that map onto an HTTP response."""

    def __init__(self, message: str, code: str = "ERROR", details: Optional[dict] = None, status_code: int = 400):
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self):
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(APIError):
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message=message, code="VALIDATION_ERROR", details=details, status_code=400)


class NotFoundError(APIError):
    def __init__(self, resource: str = "Resource"):
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ConflictError(APIError):
    def __init__(self, message: str):
        super().__init__(message=message, code="CONFLICT", status_code=409)


class ForbiddenError(APIError):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message=message, code="FORBIDDEN", status_code=403)


class DictionaryLoadError(Exception):
    """A language dictionary could not be fetched or parsed."""

    def __init__(self, lang: str, reason: str):
        self.lang = lang
        self.reason = reason
        super().__init__(f"Could not load dictionary '{lang}': {reason}")


class UnsupportedLanguageError(DictionaryLoadError):
    def __init__(self, lang: str):
        super().__init__(lang, "unsupported language")
