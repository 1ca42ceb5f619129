"""
Authentication Service Facade following Black Box Design principles.

This module provides the operations the HTTP layer calls:
- login: exchange username/password for a token
- logout: revoke a token
- refresh: rotate a valid token for a new one
- force_relogin: invalidate every outstanding token (admin only)
- authenticate: map a token to a username
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional

from ..session import SessionModule
from ..storage import StoreError
from .credentials import CredentialValidator
from .errors import ForbiddenError, InvalidCredentialsError, InvalidTokenError
from .revocation import RevocationRegistry
from .tokens import TokenIssuer, TokenValidator
from .version import GlobalVersionManager

logger = logging.getLogger(__name__)


@dataclass
class TokenGrant:
    """Token handed to a client after login or refresh."""
    token: str
    expires_in: int


class AuthService:
    """
    Orchestrates the auth components.

    Read-path store failures are absorbed inside the validator according to
    its check policies. Write-path store failures on login, refresh and
    force relogin propagate to the caller; logout logs them and succeeds.
    """

    def __init__(
        self,
        credentials: CredentialValidator,
        issuer: TokenIssuer,
        validator: TokenValidator,
        revocations: RevocationRegistry,
        versions: GlobalVersionManager,
        sessions: SessionModule,
        admin_username: Optional[str] = None,
    ):
        self.credentials = credentials
        self.issuer = issuer
        self.validator = validator
        self.revocations = revocations
        self.versions = versions
        self.sessions = sessions
        self.admin_username = admin_username

    async def login(self, username: str, password: str) -> TokenGrant:
        """
        Exchange credentials for a token.

        Raises:
            InvalidCredentialsError: If the credentials are rejected
            TokenSigningError: If the token cannot be signed
            StoreError: If the session record cannot be written
        """
        if not await self.credentials.validate(username, password):
            logger.info(f"Login rejected for user: {username}")
            raise InvalidCredentialsError()

        issued = await self.issuer.issue(username)
        logger.info(f"Login succeeded for user: {username}")
        return TokenGrant(token=issued.token, expires_in=issued.expires_in)

    async def logout(self, token: Optional[str]) -> None:
        """
        Revoke a token and drop its session record.

        A missing token is a no-op, and logging out twice is harmless.
        Store failures are logged and never reported to the caller.
        """
        if not token:
            return

        results = await asyncio.gather(
            self.revocations.revoke(token),
            self.sessions.end_session(token),
            return_exceptions=True,
        )
        errors = [result for result in results if isinstance(result, BaseException)]
        for error in errors:
            if not isinstance(error, StoreError):
                raise error
        if errors:
            logger.error(f"Logout store write failed for token {token[:12]}...: {errors[0]}")

    async def refresh(self, token: Optional[str]) -> TokenGrant:
        """
        Rotate a valid token.

        The new token is signed before the old one is revoked, so an
        interruption leaves the user with two valid tokens rather than none.
        Two concurrent refreshes of the same token may both succeed.

        Raises:
            InvalidTokenError: If the presented token is not valid
            TokenSigningError: If the new token cannot be signed
            StoreError: If the session record or revocation cannot be written
        """
        result = await self.validator.validate(token)
        if not result.ok:
            raise InvalidTokenError()

        username = result.username
        issued = await self.issuer.mint(username)

        await asyncio.gather(
            self.sessions.create_session(issued.token, username, ttl=issued.expires_in),
            self.revocations.revoke(token, exp=int(result.claims["exp"])),
        )

        logger.info(f"Token refreshed for user: {username}")
        return TokenGrant(token=issued.token, expires_in=issued.expires_in)

    async def force_relogin(self, token: Optional[str]) -> str:
        """
        Invalidate every token issued before now.

        Returns:
            The new global version

        Raises:
            InvalidTokenError: If the presented token is not valid
            ForbiddenError: If the caller is not the admin
            StoreError: If the version cannot be bumped
        """
        username = await self.require_admin(token)
        new_version = await self.versions.bump()
        logger.warning(f"Force relogin by {username}; auth version is now {new_version}")
        return new_version

    async def list_sessions(self, token: Optional[str], username: Optional[str] = None) -> List[dict]:
        """
        List recorded sessions (admin only).

        Raises:
            InvalidTokenError: If the presented token is not valid
            ForbiddenError: If the caller is not the admin
        """
        await self.require_admin(token)
        return await self.sessions.list_sessions(username=username)

    async def authenticate(self, token: Optional[str]) -> Optional[str]:
        """Return the username for a valid token, otherwise None."""
        return await self.validator.authenticate(token)

    def is_admin(self, username: str) -> bool:
        """Check whether username is the configured admin."""
        if not self.admin_username or not username:
            return False
        return secrets.compare_digest(username.encode("utf-8"), self.admin_username.encode("utf-8"))

    async def require_admin(self, token: Optional[str]) -> str:
        """
        Authenticate a token and require the admin identity.

        Raises:
            InvalidTokenError: If the token is not valid
            ForbiddenError: If the token belongs to another user
        """
        username = await self.validator.authenticate(token)
        if username is None:
            raise InvalidTokenError()

        if not self.is_admin(username):
            logger.warning(f"Admin action refused for user: {username}")
            raise ForbiddenError()

        return username
