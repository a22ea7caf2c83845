# backend/services/errors.py
from typing import Any


class ServiceError(Exception):
    """Base error raised by the service layer; carries the HTTP status to answer with."""
    status_code = 400

    def __init__(self, detail: Any, status_code: int = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class BusinessRuleError(ServiceError):
    status_code = 422


class InvoiceNumberUnavailable(ServiceError):
    status_code = 500

    def __init__(self, detail: Any = "Failed to generate unique invoice number"):
        super().__init__(detail)
