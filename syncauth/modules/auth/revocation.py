"""
Revocation registry for individually invalidated tokens.

Each revoked token gets a ``revoked:<token>`` marker whose TTL ends when
the token itself would have expired, so the deny-list cleans itself up.
A local cache remembers positive answers only; "not revoked" is always
re-read from the store.
"""

import logging
import time
from typing import Optional

import jwt

from ..storage import KeyValueStore, StoreError
from .cache import ExpiringKeySet
from .interfaces import Clock, FailurePolicy

logger = logging.getLogger(__name__)

REVOKED_KEY_PREFIX = "revoked:"


def peek_expiry(token: str) -> Optional[int]:
    """Read the exp claim without verifying the signature."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
        return int(claims["exp"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        return None


class RevocationRegistry:
    """Records and checks revoked tokens."""

    def __init__(
        self,
        store: KeyValueStore,
        token_lifetime: int,
        cache_size: int = 10000,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN,
        clock: Clock = time.time,
    ):
        """
        Initialize revocation registry.

        Args:
            store: Durable key-value store
            token_lifetime: Upper bound on marker TTL, also used when exp is unreadable
            cache_size: Maximum positive results kept locally
            failure_policy: Answer to give when the store read fails
            clock: Wall-clock time source (unix seconds)
        """
        self.store = store
        self.token_lifetime = token_lifetime
        self.failure_policy = failure_policy
        self._clock = clock
        self.cache = ExpiringKeySet(max_size=cache_size, clock=clock)

    def _expiry_for(self, token: str, exp: Optional[int]) -> float:
        # exp is unverified here; no marker outlives a genuine token
        latest = self._clock() + self.token_lifetime
        if exp is None:
            exp = peek_expiry(token)
        if exp is None:
            return latest
        return min(float(exp), latest)

    async def revoke(self, token: str, exp: Optional[int] = None) -> bool:
        """
        Revoke a token until its expiry.

        Revoking an already-revoked token rewrites the same marker.

        Args:
            token: Raw token string
            exp: Token expiry (unix seconds) if already known

        Returns:
            True if a marker was written

        Raises:
            StoreError: If the marker cannot be written
        """
        if not token:
            return False

        now = self._clock()
        expires_at = self._expiry_for(token, exp)
        ttl = max(1, int(expires_at - now))

        await self.store.put(f"{REVOKED_KEY_PREFIX}{token}", str(int(now)), ttl_seconds=ttl)
        self.cache.add(token, expires_at=now + ttl)

        logger.info(f"Revoked token {token[:12]}... for {ttl}s")
        return True

    async def is_revoked(self, token: str) -> bool:
        """
        Check whether a token has been revoked.

        Returns:
            True on a local cache hit or store hit. A store miss returns
            False; a store error returns the configured failure policy's
            answer.
        """
        if token in self.cache:
            return True

        try:
            marker = await self.store.get(f"{REVOKED_KEY_PREFIX}{token}")
        except StoreError as e:
            fail_open = self.failure_policy is FailurePolicy.FAIL_OPEN
            logger.warning(
                f"Revocation lookup failed, treating token as "
                f"{'not revoked' if fail_open else 'revoked'}: {e}"
            )
            return not fail_open

        if marker is None:
            return False

        self.cache.add(token, expires_at=self._expiry_for(token, None))
        return True
