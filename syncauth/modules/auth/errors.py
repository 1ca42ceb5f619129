"""Authentication error taxonomy."""


class AuthError(Exception):
    """Base class for authentication failures raised to the API layer."""


class InvalidCredentialsError(AuthError):
    """Username/password rejected. Never says which of the two was wrong."""

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Presented token failed validation."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(AuthError):
    """Token was valid but the identity may not perform the action."""

    def __init__(self, message: str = "Administrator privileges required"):
        super().__init__(message)


class TokenSigningError(AuthError):
    """Token could not be signed, usually because JWT_SECRET is not set."""
