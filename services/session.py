"""
Session Store

Server-side record of authenticated sessions, kept in Redis so every API
instance sees the same sessions.

The Redis client is passed in explicitly; nothing here reads a global
connection. Token issuance and verification belong to the authentication
layer, this store only remembers which tokens are live.

Keys:
- session:user:<user_id>:<first 16 chars of token>  (JSON payload, TTL)
"""

import json
import logging
from datetime import datetime

from redis.asyncio import Redis

import config

logger = logging.getLogger(__name__)

TOKEN_KEY_PREFIX_LENGTH = 16


class SessionStore:
    """
    Usage:
        store = SessionStore(redis)
        await store.store_session(user.id, token, {"email": user.email})
        if await store.has_session(user.id, token):
            ...
    """

    def __init__(self, redis: Redis, ttl_seconds: int | None = None):
        """
        Args:
            redis: Redis client (redis.asyncio or a compatible fake)
            ttl_seconds: Session lifetime (default SESSION_TTL_SECONDS)
        """
        self.redis = redis
        self.ttl_seconds = ttl_seconds or config.SESSION_TTL_SECONDS

    @staticmethod
    def session_key(user_id: int, token: str) -> str:
        if not token:
            raise ValueError("token must not be empty")
        return f"session:user:{user_id}:{token[:TOKEN_KEY_PREFIX_LENGTH]}"

    async def store_session(self, user_id: int, token: str, data: dict | None = None) -> None:
        payload = {
            "user_id": user_id,
            "created_at": datetime.now().isoformat(),
            **(data or {}),
        }
        await self.redis.set(self.session_key(user_id, token), json.dumps(payload), ex=self.ttl_seconds)
        logger.debug(f"Session stored for user {user_id}")

    async def get_session(self, user_id: int, token: str) -> dict | None:
        raw = await self.redis.get(self.session_key(user_id, token))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return json.loads(raw)

    async def has_session(self, user_id: int, token: str) -> bool:
        return await self.redis.exists(self.session_key(user_id, token)) > 0

    async def touch(self, user_id: int, token: str) -> bool:
        """Extend a live session to the full TTL. Returns False if it has expired."""
        return bool(await self.redis.expire(self.session_key(user_id, token), self.ttl_seconds))

    async def revoke(self, user_id: int, token: str) -> bool:
        deleted = await self.redis.delete(self.session_key(user_id, token))
        if deleted:
            logger.info(f"Session revoked for user {user_id}")
        return deleted > 0

    async def revoke_all(self, user_id: int) -> int:
        """Revoke every session of a user (e.g. after a password change)."""
        keys = [key async for key in self.redis.scan_iter(match=f"session:user:{user_id}:*")]
        if not keys:
            return 0
        deleted = await self.redis.delete(*keys)
        logger.info(f"Revoked {deleted} sessions for user {user_id}")
        return deleted
