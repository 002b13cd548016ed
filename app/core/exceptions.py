"""
Application error taxonomy.

Services and the document store raise these; the exception handlers
registered in main.py turn them into HTTP responses.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors surfaced to the caller of a user action."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class PreconditionFailedError(AppError):
    status_code = 409


class AlreadyPaidError(PreconditionFailedError):
    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice {invoice_id} has already been marked as paid.")
        self.invoice_id = invoice_id


class PermissionDeniedError(AppError):
    status_code = 403


class InputValidationError(AppError):
    """Raised before any write when user input is invalid."""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ContentionError(AppError):
    """A transaction kept losing to concurrent writers."""

    status_code = 409


class TransactionFailedError(AppError):
    status_code = 500
