import asyncio
import json
import logging
import time
from typing import List, Optional

from ..storage import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionModule:
    def __init__(self, store: KeyValueStore, default_ttl: int = 14400, clock=time.time):
        """
        Initialize session module.

        Args:
            store: Durable key-value store
            default_ttl: Default session TTL in seconds (4 hours)
            clock: Wall-clock time source (unix seconds)
        """
        self.store = store
        self.default_ttl = default_ttl
        self._clock = clock

    async def create_session(self, token: str, username: str, ttl: Optional[int] = None) -> dict:
        """
        Record a newly issued token.

        Args:
            token: Issued token
            username: Token owner
            ttl: Record TTL in seconds, normally the token lifetime

        Returns:
            Session data dict

        Session records are observational: the token validator never reads
        them, so a missing record does not invalidate a token.
        """
        ttl = ttl or self.default_ttl
        now_ms = int(self._clock() * 1000)

        session_data = {
            "username": username,
            "created": now_ms,
            "expires": now_ms + ttl * 1000,
        }

        await self.store.put(f"{SESSION_KEY_PREFIX}{token}", json.dumps(session_data), ttl_seconds=ttl)
        return session_data

    async def get_session(self, token: str) -> Optional[dict]:
        """
        Get session details.

        Args:
            token: Token the session was recorded under

        Returns:
            Session data dict or None if not found
        """
        data = await self.store.get(f"{SESSION_KEY_PREFIX}{token}")

        if data:
            return json.loads(data)
        return None

    async def end_session(self, token: str) -> None:
        """Delete the session record for a token, if any."""
        await self.store.delete(f"{SESSION_KEY_PREFIX}{token}")

    async def list_sessions(self, username: Optional[str] = None) -> List[dict]:
        """
        Get all recorded sessions.

        Used for monitoring/admin purposes.

        Args:
            username: Only return sessions for this user

        Returns:
            List of session data, each with a token_prefix for display
        """
        keys = await self.store.list(SESSION_KEY_PREFIX)
        values = await asyncio.gather(*(self.store.get(key) for key in keys))

        sessions = []
        for key, data in zip(keys, values):
            # Expired between list and get
            if data is None:
                continue

            try:
                session_data = json.loads(data)
            except ValueError:
                logger.warning(f"Skipping unreadable session record {key[:20]}...")
                continue

            if username and session_data.get("username") != username:
                continue

            session_data["token_prefix"] = key[len(SESSION_KEY_PREFIX):][:12]
            sessions.append(session_data)

        sessions.sort(key=lambda s: s.get("created", 0), reverse=True)
        return sessions
