"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ConstraintValidationError(DomainException):
    """User input failed validation before any request was issued"""

    pass


class BackendAPIError(DomainException):
    """Card backend returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None, backend_message: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.backend_message = backend_message

    def user_message(self, fallback: str) -> str:
        """Backend-provided message when there is one, else the caller's fallback"""
        return self.backend_message or fallback
