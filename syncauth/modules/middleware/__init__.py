"""
Authentication Middleware Module - Black Box Interface

Purpose: Gate protected routes of a FastAPI application on a bearer token
Interface: extract_token(), login_redirect(), TokenAuthMiddleware
Hidden: Token transport precedence, redirect formatting

Unauthenticated requests are redirected to the login page with the token
cookie cleared; the reason a token was rejected is never exposed.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "authToken"
TOKEN_QUERY_PARAM = "token"
LOGIN_PATH = "/login"


def extract_token(request: Request) -> Optional[str]:
    """
    Extract the bearer token from a request.

    Precedence: Authorization header, then the authToken cookie, then the
    token query parameter.
    """
    auth_header = request.headers.get("Authorization", request.headers.get("authorization"))
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token

    token = request.cookies.get(TOKEN_COOKIE)
    if token:
        return token

    return request.query_params.get(TOKEN_QUERY_PARAM) or None


def login_redirect() -> RedirectResponse:
    """Redirect to the login page and clear the token cookie."""
    response = RedirectResponse(url=LOGIN_PATH, status_code=302)
    response.delete_cookie(TOKEN_COOKIE, path="/")
    return response


class TokenAuthMiddleware:
    """
    Bearer token middleware for FastAPI applications.

    Every path not listed in skip_paths requires a valid token. On success
    the username is stored on request.state.username for downstream use.
    """

    def __init__(
        self,
        authenticator: Callable[[str], Awaitable[Optional[str]]],
        skip_paths: Optional[Dict[str, list]] = None,
        log_attempts: bool = True
    ):
        """
        Initialize token authentication middleware.

        Args:
            authenticator: Async function mapping a token to a username or None
            skip_paths: Dict of {path: [methods]} to skip authentication
            log_attempts: Whether to log authentication attempts
        """
        self.authenticator = authenticator
        self.skip_paths = skip_paths or {}
        self.log_attempts = log_attempts

    def should_skip_auth(self, request: Request) -> bool:
        """Check if authentication should be skipped for this request."""
        path = str(request.url.path)
        method = request.method.upper()

        if path in self.skip_paths:
            allowed_methods = self.skip_paths[path]
            if "*" in allowed_methods or method in allowed_methods:
                return True

        return False

    async def __call__(self, request: Request, call_next):
        """Process the request through token authentication."""
        if self.should_skip_auth(request):
            return await call_next(request)

        token = extract_token(request)
        if not token:
            if self.log_attempts:
                logger.debug(f"Request to {request.url.path} without token")
            return login_redirect()

        try:
            username = await self.authenticator(token)
        except Exception as e:
            logger.error(f"Error during authentication: {e}")
            return login_redirect()

        if username is None:
            if self.log_attempts:
                logger.info(f"Invalid token presented for {request.url.path}")
            return login_redirect()

        request.state.username = username
        return await call_next(request)


def create_token_middleware(
    authenticator: Callable[[str], Awaitable[Optional[str]]],
    skip_paths: Optional[Dict[str, list]] = None,
) -> TokenAuthMiddleware:
    """
    Factory function to create token authentication middleware.

    Args:
        authenticator: Async function mapping a token to a username or None
        skip_paths: Extra paths to skip authentication {"/path": ["GET", "POST"]}

    Returns:
        Configured TokenAuthMiddleware instance
    """
    # Login landing, health and the auth endpoints that check tokens themselves
    default_skip_paths = {
        "/login": ["GET"],
        "/health": ["GET"],
        "/api/login": ["POST"],
        "/api/logout": ["POST"],
        "/api/refresh-token": ["POST"],
        "/api/admin/force-relogin": ["POST"],
        "/api/admin/sessions": ["GET"],
    }

    if skip_paths:
        default_skip_paths.update(skip_paths)

    return TokenAuthMiddleware(authenticator=authenticator, skip_paths=default_skip_paths)


__all__ = [
    "LOGIN_PATH",
    "TOKEN_COOKIE",
    "TokenAuthMiddleware",
    "create_token_middleware",
    "extract_token",
    "login_redirect",
]
