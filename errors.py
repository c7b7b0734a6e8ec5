"""
Error taxonomy.

Services raise these; main.py turns each one into its status code and a
user-facing message. Nothing else about the failure leaves the server.
"""

from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(ValidationError):
    default_message = "User already exists"


class AuthError(AppError):
    status_code = 400
    default_message = "Authentication failed"


class InvalidCredentialsError(AuthError):
    # Same text for unknown email and wrong password.
    default_message = "Invalid email or password"


class UnauthorizedError(AuthError):
    status_code = 401
    default_message = "Access denied"


class ForbiddenError(AuthError):
    status_code = 403
    default_message = "Invalid or expired token"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Transaction not found"


class ServerError(AppError):
    status_code = 500
