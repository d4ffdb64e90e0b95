# tradebot/infrastructure/cache/session_cache.py
import copy
import json
import logging
from typing import Dict

import redis.asyncio as redis
from redis.exceptions import RedisError

from tradebot.domain.errors import StorageUnavailable
from tradebot.domain.session import Session

logger = logging.getLogger("session_cache")

# ---------------------------------------------------------------------------
# TTL constants
# ---------------------------------------------------------------------------
SESSION_TTL_SECONDS = 14 * 24 * 60 * 60        # 14 days hard expiry


class RedisSessionStore:
    """Per-user session records in Redis, one JSON blob per user."""

    def __init__(self, redis_url: str, ttl_seconds: int = SESSION_TTL_SECONDS):
        if not redis_url:
            raise RuntimeError("REDIS_URL is not set")
        self._r = redis.from_url(redis_url, decode_responses=True)
        self._ttl = ttl_seconds

    @classmethod
    def from_client(cls, client: redis.Redis, ttl_seconds: int = SESSION_TTL_SECONDS) -> "RedisSessionStore":
        store = cls.__new__(cls)
        store._r = client
        store._ttl = ttl_seconds
        return store

    def _key(self, user_id: str) -> str:
        return f"tg:session:{user_id}"

    async def get(self, user_id: str) -> Session:
        try:
            raw = await self._r.get(self._key(user_id))
        except RedisError as exc:
            raise StorageUnavailable(f"Session read failed for {user_id}: {exc}") from exc
        if not raw:
            return Session()
        try:
            return Session.from_dict(json.loads(raw))
        except (ValueError, TypeError, AttributeError):
            logger.warning("Discarding unreadable session for user %s", user_id)
            return Session()

    async def set(self, user_id: str, session: Session) -> None:
        try:
            await self._r.set(
                self._key(user_id),
                json.dumps(session.to_dict()),
                ex=self._ttl,
            )
        except RedisError as exc:
            raise StorageUnavailable(f"Session write failed for {user_id}: {exc}") from exc

    async def clear(self, user_id: str) -> None:
        try:
            await self._r.delete(self._key(user_id))
        except RedisError as exc:
            raise StorageUnavailable(f"Session delete failed for {user_id}: {exc}") from exc

    async def close(self) -> None:
        await self._r.aclose()


class InMemorySessionStore:
    """Process-local store for local runs and tests."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    async def get(self, user_id: str) -> Session:
        session = self._sessions.get(user_id)
        # hand out copies so an unsaved mutation never leaks into the store
        return copy.deepcopy(session) if session is not None else Session()

    async def set(self, user_id: str, session: Session) -> None:
        self._sessions[user_id] = copy.deepcopy(session)

    async def clear(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    async def close(self) -> None:
        self._sessions.clear()
