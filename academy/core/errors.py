from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto a single HTTP error response.

    Each subclass fixes an HTTP status and a stable ``code`` that clients can
    switch on; ``message`` is safe to show to the caller.
    """

    status_code: int = 400
    code: str = 'BAD_REQUEST'
    default_message: str = 'Bad request'

    def __init__(self, message: Optional[str] = None, *, errors: Optional[list] = None) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = 'VALIDATION_ERROR'
    default_message = 'Validation error'


class InvalidCredentials(AppError):
    status_code = 401
    code = 'INVALID_CREDENTIALS'
    default_message = 'Invalid email or password'


class MissingToken(AppError):
    status_code = 401
    code = 'MISSING_TOKEN'
    default_message = 'Access token required'


class InvalidToken(AppError):
    status_code = 401
    code = 'INVALID_TOKEN'
    default_message = 'Invalid token'


class TokenExpired(AppError):
    status_code = 401
    code = 'TOKEN_EXPIRED'
    default_message = 'Token expired'


class InvalidOrExpired(AppError):
    """Refresh token failed signature or expiry verification."""

    status_code = 401
    code = 'REFRESH_TOKEN_INVALID'
    default_message = 'Invalid or expired refresh token'


class NoRefreshToken(AppError):
    status_code = 401
    code = 'NO_REFRESH_TOKEN'
    default_message = 'No refresh token provided'


class RevokedOrExpired(AppError):
    status_code = 401
    code = 'REFRESH_TOKEN_INVALID'
    default_message = 'Invalid or expired refresh token'


class UserNotFound(AppError):
    status_code = 401
    code = 'USER_NOT_FOUND'
    default_message = 'User not found'


class Forbidden(AppError):
    status_code = 403
    code = 'FORBIDDEN'
    default_message = 'Access denied'


class NotFound(AppError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Not found'


class DuplicateIdentity(AppError):
    status_code = 409
    code = 'DUPLICATE_IDENTITY'
    default_message = 'Email already registered'


class ForeignKeyViolation(AppError):
    status_code = 500
    code = 'FOREIGN_KEY_VIOLATION'
    default_message = 'Referenced user does not exist'
