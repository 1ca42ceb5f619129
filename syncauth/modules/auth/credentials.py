"""
Credential validation for username/password logins.

A configured primary account pair is checked first. Every other account
is looked up from its credential record at ``auth:<username>``, a JSON
object with ``username`` and ``password`` fields.
"""

import json
import logging
import secrets
from typing import Optional

from ..storage import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

CREDENTIAL_KEY_PREFIX = "auth:"


def _same(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class CredentialValidator:
    """Validates username/password pairs against config and the store."""

    def __init__(
        self,
        store: KeyValueStore,
        primary_username: Optional[str] = None,
        primary_password: Optional[str] = None,
    ):
        """
        Initialize credential validator.

        Args:
            store: Durable key-value store holding credential records
            primary_username: Operational override account name
            primary_password: Operational override account password
        """
        self.store = store
        self.primary_username = primary_username
        self.primary_password = primary_password

    def is_primary(self, username: str) -> bool:
        """Check whether username is the configured primary account."""
        return bool(self.primary_username) and _same(username, self.primary_username)

    async def load_record(self, username: str) -> Optional[dict]:
        """
        Fetch the credential record for a user.

        Returns:
            Record dict, or None when the user has no record

        Raises:
            StoreError: If the store cannot be read
            ValueError: If the stored record is not a JSON object
        """
        raw = await self.store.get(f"{CREDENTIAL_KEY_PREFIX}{username}")
        if raw is None:
            return None

        record = json.loads(raw)
        if not isinstance(record, dict):
            raise ValueError(f"Credential record for {username} is not an object")
        return record

    async def validate(self, username: str, password: str) -> bool:
        """
        Check a submitted username/password pair.

        Store and decode errors are treated as a rejection.

        Returns:
            True if the pair is accepted
        """
        if not username or password is None:
            return False

        if self.is_primary(username) and self.primary_password is not None:
            if _same(password, self.primary_password):
                logger.debug("Primary account credentials accepted")
                return True

        try:
            record = await self.load_record(username)
        except (StoreError, ValueError) as e:
            logger.warning(f"Credential lookup failed for {username}: {e}")
            return False

        if not record:
            return False

        stored = record.get("password")
        return isinstance(stored, str) and _same(password, stored)

    async def current_secret(self, username: str) -> Optional[str]:
        """
        Return the secret currently in force for an account.

        The primary account uses the configured password; every other
        account uses its credential record.

        Raises:
            StoreError: If the store cannot be read
            ValueError: If the stored record is malformed
        """
        if self.is_primary(username) and self.primary_password is not None:
            return self.primary_password

        record = await self.load_record(username)
        if not record:
            return None

        stored = record.get("password")
        return stored if isinstance(stored, str) else None
