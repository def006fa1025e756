from typing import Any, Optional


class AppException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=404,
            details=details,
        )


class ValidationException(AppException):
    """Exception raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class ConflictException(AppException):
    """Exception raised when a unique key is already taken."""

    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=409,
            details=details,
        )


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(
        self, message: str = "Database error occurred", details: Optional[Any] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=message,
            status_code=500,
            details=details,
        )


class UnauthorizedException(AppException):
    """Exception raised when authentication or authorization fails."""

    def __init__(
        self,
        message: str = "Unauthorized access",
        details: Optional[Any] = None,
        code: str = "UNAUTHORIZED",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=401,
            details=details,
        )


class InvalidCredentialsException(UnauthorizedException):
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message, code="INVALID_CREDENTIALS")


class InvalidTokenException(UnauthorizedException):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message, code="INVALID_OR_EXPIRED_TOKEN")


class ForbiddenException(AppException):
    """Exception raised when the caller lacks the role or ownership required."""

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN"):
        super().__init__(code=code, message=message, status_code=403)


class UnverifiedAccountException(ForbiddenException):
    def __init__(self, message: str = "Please verify your email first"):
        super().__init__(message=message, code="UNVERIFIED")


class InvalidOTPException(AppException):
    def __init__(self, message: str = "Invalid OTP"):
        super().__init__(code="INVALID_CODE", message=message, status_code=400)


class OTPExpiredException(AppException):
    def __init__(self, message: str = "OTP expired"):
        super().__init__(code="EXPIRED", message=message, status_code=400)


class PasswordMismatchException(AppException):
    def __init__(self, message: str = "New password and confirm password do not match"):
        super().__init__(code="MISMATCH", message=message, status_code=400)


class PasswordUnchangedException(AppException):
    def __init__(self, message: str = "New password must be different from current password"):
        super().__init__(code="UNCHANGED", message=message, status_code=400)


class PlanUnavailableException(AppException):
    def __init__(self, message: str = "Selected plan is not available"):
        super().__init__(code="UNAVAILABLE", message=message, status_code=400)


class UnsupportedPlanException(AppException):
    def __init__(self, message: str = "This plan does not have an associated Stripe price ID"):
        super().__init__(code="UNSUPPORTED", message=message, status_code=400)


class SubscriptionInactiveException(AppException):
    def __init__(self, message: str = "User does not have an active subscription"):
        super().__init__(code="INACTIVE", message=message, status_code=400)


class ExternalServiceException(AppException):
    """Exception raised when a payment gateway call fails; carries the gateway's message."""

    def __init__(self, message: str = "Payment provider request failed", details: Optional[Any] = None):
        super().__init__(
            code="EXTERNAL_SERVICE_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class WebhookSignatureException(AppException):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(code="SIGNATURE_INVALID", message=message, status_code=400)
