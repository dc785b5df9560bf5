from typing import Any, Dict, Optional
from fastapi import status

from quizhub.core.exceptions.handler import ServiceError, ServiceErrorCode


class BadRequestError(ServiceError):
    def __init__(
        self,
        message: str = "Bad request",
        code: str = ServiceErrorCode.INVALID_INPUT,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_400_BAD_REQUEST, details)


class UnauthorizedError(ServiceError):
    def __init__(
        self,
        message: str = "Unauthorized",
        code: str = ServiceErrorCode.INVALID_CREDENTIALS,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenError(ServiceError):
    def __init__(
        self,
        message: str = "Forbidden",
        code: str = ServiceErrorCode.FORBIDDEN,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_403_FORBIDDEN, details)


class PaymentRequiredError(ForbiddenError):
    def __init__(
        self,
        message: str = "Payment required for this tier. Please purchase tier access.",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, ServiceErrorCode.PAYMENT_REQUIRED, details)


class NotFoundError(ServiceError):
    def __init__(
        self,
        message: str = "Resource not found",
        code: str = ServiceErrorCode.NOT_FOUND,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_404_NOT_FOUND, details)


class ConflictError(ServiceError):
    def __init__(
        self,
        message: str = "Resource already exists",
        code: str = ServiceErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_409_CONFLICT, details)


class ServiceUnavailableError(ServiceError):
    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        code: str = ServiceErrorCode.SERVICE_UNAVAILABLE,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(code, message, status.HTTP_503_SERVICE_UNAVAILABLE, details)
