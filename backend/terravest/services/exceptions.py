"""
Domain exceptions raised by the services layer

Each exception carries its HTTP status and error code; the API layer renders
them through a single handler (terravest.api.exceptions.app_error_handler).
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors that map to a client-facing response"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated"""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(AppError):
    """Raised when the caller may not act on a resource"""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFoundError(AppError):
    """Raised when a resource does not exist"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any = None):
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        else:
            message = f"{resource} not found"
        self.resource = resource
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input fails a business rule"""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str):
        super().__init__(f"Validation error: {message}")


class InsufficientFundsError(AppError):
    """Raised when a debit would take the wallet balance below zero"""

    status_code = 400
    code = "INSUFFICIENT_FUNDS"

    def __init__(self, message: str = "Insufficient funds"):
        super().__init__(message)


class KycRequiredError(AppError):
    """Raised when an investment action needs an APPROVED KYC status"""

    status_code = 403
    code = "KYC_REQUIRED"

    def __init__(self, message: str = "KYC verification required"):
        super().__init__(message, details={"requires_kyc": True})


class InvalidStateError(AppError):
    """Raised when a resource is not in a status that allows the action"""

    status_code = 409
    code = "INVALID_STATE"

    def __init__(self, message: str):
        super().__init__(message)
