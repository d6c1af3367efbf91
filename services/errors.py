"""
Domain errors raised by the services and stores.

Every error carries the HTTP status and error code the API answers with,
so blueprints never translate exceptions themselves; api/errors.py turns
them into the uniform error envelope.
"""
from __future__ import annotations


class AppError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(AppError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "User not found"


class BadCredentials(AppError):
    status_code = 400
    error_code = "BAD_CREDENTIALS"
    default_message = "Incorrect password"


class Conflict(AppError):
    # duplicate username/email is reported as a bad request
    status_code = 400
    error_code = "CONFLICT"
    default_message = "Resource already exists"


class MissingToken(AppError):
    status_code = 401
    error_code = "MISSING_TOKEN"
    default_message = "Unauthorized access, token not provided"


class InvalidToken(AppError):
    status_code = 401
    error_code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class MalformedToken(InvalidToken):
    default_message = "Malformed token"


class Unauthorized(AppError):
    status_code = 401
    error_code = "UNAUTHORIZED"
    default_message = "Invalid or expired token"


class Forbidden(AppError):
    status_code = 403
    error_code = "FORBIDDEN"
    default_message = "You are not allowed to act on this user"


class InvalidAmount(AppError):
    status_code = 400
    error_code = "INVALID_AMOUNT"
    default_message = "Amount must be a positive number"


class InsufficientFunds(AppError):
    status_code = 400
    error_code = "INSUFFICIENT_FUNDS"
    default_message = "Not enough gems to complete the operation"


class StorageFailure(AppError):
    status_code = 500
    error_code = "STORAGE_FAILURE"
    default_message = "Storage backend unavailable"
