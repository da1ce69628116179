"""
Authentication-specific exceptions.
"""
from typing import Dict, List, Optional

from fastapi import status

from ..exceptions import AppException


class AuthException(AppException):
    """Base class for authentication exceptions."""


class ValidationError(AuthException):
    """Exception raised when account fields fail validation.

    Carries every failing field, not just the first one.
    """
    def __init__(self, errors: List[Dict[str, str]], detail: str = "Validation failed"):
        self.errors = errors
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, {"errors": errors})


class ConflictError(AuthException):
    """Exception raised when email already exists."""
    def __init__(self, detail: str = "User with this email already exists"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class MissingCredentialsError(AuthException):
    """Exception raised when login is attempted without email or password."""
    def __init__(self, detail: str = "Please provide email and password"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class InvalidVerificationTokenError(AuthException):
    """Exception raised when a verification token is wrong, expired or already used."""
    def __init__(self, detail: str = "Invalid or expired verification token"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class AlreadyVerifiedError(AuthException):
    """Exception raised when verification is requested for a verified account."""
    def __init__(self, detail: str = "Email is already verified"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class AuthenticationError(AuthException):
    """Exception raised when a request cannot be authenticated."""
    def __init__(self, detail: str = "Not authorized"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail)


class InvalidCredentialsError(AuthenticationError):
    """Exception raised when credentials are invalid.

    Unknown email and wrong password share this message.
    """
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class AuthorizationError(AuthException):
    """Exception raised when user doesn't have required role."""
    def __init__(self, role: str, detail: Optional[str] = None):
        message = detail or f"Role '{role}' is not authorized to access this route"
        super().__init__(status.HTTP_403_FORBIDDEN, message)


class VerificationRequiredError(AuthException):
    """Exception raised when valid credentials belong to an unverified account."""
    def __init__(
        self,
        detail: str = "Please verify your email before logging in. Check your inbox for the verification link."
    ):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, {"isVerified": False})


class NotFoundError(AuthException):
    """Exception raised when the target account doesn't exist."""
    def __init__(self, detail: str = "User not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class UpstreamNotificationError(AuthException):
    """Exception raised when the notification sink fails to deliver."""
    def __init__(self, detail: str = "Failed to send email", error: Optional[str] = None):
        extra = {"error": error} if error else None
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, extra)


class InvalidSessionTokenError(Exception):
    """Raised by the session issuer for any malformed, forged or expired token."""
