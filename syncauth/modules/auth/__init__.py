"""
Authentication Module - Black Box Interface

Purpose: Issue, validate, revoke and rotate bearer tokens
Interface: AuthService.login(), logout(), refresh(), force_relogin(), authenticate()
Hidden: Token format, signing, revocation storage, version caching

This module can be completely replaced with any other auth implementation
(OAuth, opaque tokens, external service) without affecting other modules.
"""

from .errors import (
    AuthError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenSigningError,
)
from .factory import AuthFactory
from .interfaces import CheckPolicies, FailurePolicy, TokenRejection
from .service import AuthService, TokenGrant

__all__ = [
    "AuthError",
    "AuthFactory",
    "AuthService",
    "CheckPolicies",
    "FailurePolicy",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenGrant",
    "TokenRejection",
    "TokenSigningError",
]
