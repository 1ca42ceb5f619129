"""
Bearer token issuance and validation.

Tokens are HS256 JWTs carrying:
- username: account the token was issued to
- exp / iat: expiry and issue time (unix seconds)
- jti: random id, so two tokens issued in the same second differ
- authVersion: global auth version at issue time
- passwordHash: fingerprint of the account secret at issue time

Validation runs five checks in a fixed order and stops at the first
failure: signature, expiry, revocation, global version, password
fingerprint.
"""

import hmac
import logging
import secrets
import time
import zlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from ..session import SessionModule
from ..storage import StoreError
from .credentials import CredentialValidator
from .errors import InvalidCredentialsError, TokenSigningError
from .interfaces import CheckPolicies, Clock, FailurePolicy, TokenRejection
from .revocation import RevocationRegistry
from .version import GlobalVersionManager

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["username", "exp", "authVersion", "passwordHash"]


def password_fingerprint(secret: str) -> str:
    """
    Short fingerprint of an account secret.

    Only used to notice that a password changed; CRC32 is enough.
    """
    return format(zlib.crc32(secret.encode("utf-8")) & 0xFFFFFFFF, "08x")


@dataclass
class IssuedToken:
    """A freshly signed token."""
    token: str
    expires_in: int
    claims: Dict[str, Any]


@dataclass
class ValidationResult:
    """Outcome of validating a token."""
    username: Optional[str]
    rejection: Optional[TokenRejection] = None
    claims: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.username is not None


class TokenIssuer:
    """Builds and signs bearer tokens."""

    def __init__(
        self,
        secret: Optional[str],
        credentials: CredentialValidator,
        versions: GlobalVersionManager,
        sessions: SessionModule,
        token_lifetime: int = 14400,
        clock: Clock = time.time,
    ):
        self.secret = secret
        self.credentials = credentials
        self.versions = versions
        self.sessions = sessions
        self.token_lifetime = token_lifetime
        self._clock = clock

    async def build_claims(self, username: str) -> Dict[str, Any]:
        """
        Assemble claims for a new token.

        Raises:
            InvalidCredentialsError: If the account no longer has a secret
            StoreError: If the version or credential record cannot be read
        """
        version = await self.versions.current()
        secret = await self.credentials.current_secret(username)
        if secret is None:
            raise InvalidCredentialsError()

        now = int(self._clock())
        return {
            "username": username,
            "exp": now + self.token_lifetime,
            "iat": now,
            "jti": secrets.token_urlsafe(12),
            "authVersion": version,
            "passwordHash": password_fingerprint(secret),
        }

    def sign(self, claims: Dict[str, Any]) -> str:
        """
        Sign claims with the server secret.

        Raises:
            TokenSigningError: If no secret is configured or encoding fails
        """
        if not self.secret:
            raise TokenSigningError("JWT_SECRET is not configured")
        try:
            return jwt.encode(claims, self.secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise TokenSigningError(f"Failed to sign token: {e}") from e

    async def mint(self, username: str) -> IssuedToken:
        """Build and sign a token without recording a session."""
        claims = await self.build_claims(username)
        token = self.sign(claims)
        return IssuedToken(token=token, expires_in=self.token_lifetime, claims=claims)

    async def issue(self, username: str) -> IssuedToken:
        """
        Issue a token and record its session.

        The session record is only written once signing has succeeded.

        Raises:
            TokenSigningError: If the token cannot be signed
            StoreError: If the session record cannot be written
        """
        issued = await self.mint(username)
        await self.sessions.create_session(issued.token, username, ttl=self.token_lifetime)
        return issued


class TokenValidator:
    """
    Verifies bearer tokens.

    Rejections carry an internal reason for logging; callers only ever see
    a username or None.
    """

    def __init__(
        self,
        secret: Optional[str],
        credentials: CredentialValidator,
        versions: GlobalVersionManager,
        revocations: RevocationRegistry,
        policies: Optional[CheckPolicies] = None,
        clock: Clock = time.time,
    ):
        self.secret = secret
        self.credentials = credentials
        self.versions = versions
        self.revocations = revocations
        self.policies = policies or CheckPolicies()
        self._clock = clock

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """Verify the signature and required claims. Expiry is checked separately."""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid JWT token: {e}")
            return None

    async def validate(self, token: Optional[str]) -> ValidationResult:
        """Run all checks in order and report the first failure."""
        if not token:
            return self._reject(token, TokenRejection.MISSING)

        if not self.secret:
            logger.error("JWT_SECRET is not configured - cannot verify tokens")
            return self._reject(token, TokenRejection.MALFORMED)

        claims = self.decode(token)
        if claims is None or not isinstance(claims.get("username"), str):
            return self._reject(token, TokenRejection.MALFORMED)

        try:
            exp = int(claims["exp"])
        except (TypeError, ValueError):
            return self._reject(token, TokenRejection.MALFORMED)

        if exp <= self._clock():
            return self._reject(token, TokenRejection.EXPIRED)

        if await self.revocations.is_revoked(token):
            return self._reject(token, TokenRejection.REVOKED)

        if not await self._version_current(claims):
            return self._reject(token, TokenRejection.STALE_VERSION)

        if not await self._fingerprint_current(claims):
            return self._reject(token, TokenRejection.PASSWORD_CHANGED)

        return ValidationResult(username=claims["username"], claims=claims)

    async def authenticate(self, token: Optional[str]) -> Optional[str]:
        """
        Validate a token and return its username.

        Never raises; any unexpected failure is logged and treated as
        unauthenticated.
        """
        try:
            result = await self.validate(token)
        except Exception as e:
            logger.error(f"Unexpected error validating token: {e}")
            return None
        return result.username

    async def _version_current(self, claims: Dict[str, Any]) -> bool:
        try:
            current = int(await self.versions.current())
        except (StoreError, ValueError) as e:
            if self.policies.version_lookup is FailurePolicy.FAIL_CLOSED:
                logger.warning(f"Global version lookup failed, rejecting token: {e}")
                return False
            logger.warning(f"Global version lookup failed, assuming version 0: {e}")
            current = 0

        try:
            embedded = int(claims["authVersion"])
        except (TypeError, ValueError):
            return False

        return embedded >= current

    async def _fingerprint_current(self, claims: Dict[str, Any]) -> bool:
        username = claims["username"]
        try:
            secret = await self.credentials.current_secret(username)
        except (StoreError, ValueError) as e:
            fail_open = self.policies.fingerprint_lookup is FailurePolicy.FAIL_OPEN
            logger.warning(
                f"Credential lookup for {username} failed, "
                f"{'skipping' if fail_open else 'rejecting on'} fingerprint check: {e}"
            )
            return fail_open

        if secret is None:
            return False

        return hmac.compare_digest(
            password_fingerprint(secret).encode("utf-8"),
            str(claims["passwordHash"]).encode("utf-8"),
        )

    def _reject(self, token: Optional[str], reason: TokenRejection) -> ValidationResult:
        prefix = f"{token[:12]}..." if token else "<none>"
        logger.info(f"Token {prefix} rejected: {reason.value}")
        return ValidationResult(username=None, rejection=reason)
