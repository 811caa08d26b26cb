"""
Evo Store - Custom Exceptions
==============================
Business-level exceptions that can be caught and converted to HTTP responses.
"""

from fastapi import HTTPException


class EvoError(Exception):
    """Base exception for all business logic errors."""
    def __init__(self, message: str = "Something went wrong."):
        self.message = message
        super().__init__(self.message)


class ValidationError(EvoError):
    """Raised when user input fails a business rule (empty cart, bad size...)."""
    pass


class NotFoundError(EvoError):
    """Raised when a requested resource doesn't exist."""
    pass


def raise_http(error: EvoError, status_code: int = 400):
    """Convert a business exception to an HTTP exception."""
    raise HTTPException(status_code=status_code, detail=error.message)
