"""Exceptions raised by the authentication services.

Routers translate these to HTTP responses; the distinctions between
subclasses are for logging and never reach the client verbatim.
"""


class AuthError(Exception):
    """Base authentication error."""

    pass


class DuplicateEmailError(AuthError):
    """An account with this email already exists."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


class TokenError(AuthError):
    """JWT token error."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is invalid, of the wrong type, or revoked."""

    pass


class ResetTokenError(AuthError):
    """Password reset token is unknown, used, or expired."""

    pass


class NotificationError(Exception):
    """The outbound notification sink could not deliver a message."""

    pass
