"""
Exception Classes - Strongly typed exception hierarchy.

NO DICTIONARIES - All exceptions have typed attributes.
"""


class ReceiptValidatorError(Exception):
    """Base exception for all receipt validation errors."""

    pass


class ValidationError(ReceiptValidatorError):
    """Raised when a transaction payload cannot be parsed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
