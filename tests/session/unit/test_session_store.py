"""
Unit Tests: services/session.py (SessionStore on fakeredis)
"""

import pytest

from services.session import SessionStore

TOKEN = "eyJhbGciOiJIUzI1NiJ9.payload.signature"


class TestSessionStore:

    def test_key_uses_token_prefix(self):
        assert SessionStore.session_key(7, TOKEN) == "session:user:7:eyJhbGciOiJIUzI1"

    def test_empty_token_rejected(self):
        with pytest.raises(ValueError):
            SessionStore.session_key(7, "")

    @pytest.mark.asyncio
    async def test_store_and_get(self, redis_client):
        store = SessionStore(redis_client, ttl_seconds=600)

        await store.store_session(7, TOKEN, {"email": "user@example.com"})
        session = await store.get_session(7, TOKEN)

        assert session["user_id"] == 7
        assert session["email"] == "user@example.com"
        assert "created_at" in session
        assert 0 < await redis_client.ttl(SessionStore.session_key(7, TOKEN)) <= 600

    @pytest.mark.asyncio
    async def test_unknown_session(self, redis_client):
        store = SessionStore(redis_client)

        assert await store.get_session(7, TOKEN) is None
        assert await store.has_session(7, TOKEN) is False

    @pytest.mark.asyncio
    async def test_default_ttl_from_config(self, redis_client):
        store = SessionStore(redis_client)

        await store.store_session(1, TOKEN)

        assert 0 < await redis_client.ttl(SessionStore.session_key(1, TOKEN)) <= 3600

    @pytest.mark.asyncio
    async def test_touch_extends_ttl(self, redis_client):
        store = SessionStore(redis_client, ttl_seconds=600)
        await store.store_session(7, TOKEN)
        await redis_client.expire(SessionStore.session_key(7, TOKEN), 10)

        assert await store.touch(7, TOKEN) is True
        assert await redis_client.ttl(SessionStore.session_key(7, TOKEN)) > 10

    @pytest.mark.asyncio
    async def test_touch_expired_session(self, redis_client):
        store = SessionStore(redis_client)

        assert await store.touch(7, TOKEN) is False

    @pytest.mark.asyncio
    async def test_revoke(self, redis_client):
        store = SessionStore(redis_client)
        await store.store_session(7, TOKEN)

        assert await store.revoke(7, TOKEN) is True
        assert await store.has_session(7, TOKEN) is False
        assert await store.revoke(7, TOKEN) is False

    @pytest.mark.asyncio
    async def test_revoke_all_only_touches_one_user(self, redis_client):
        store = SessionStore(redis_client)
        await store.store_session(7, "token-aaaaaaaaaaaaaaaa")
        await store.store_session(7, "token-bbbbbbbbbbbbbbbb")
        await store.store_session(8, "token-cccccccccccccccc")

        assert await store.revoke_all(7) == 2
        assert await store.has_session(8, "token-cccccccccccccccc") is True
        assert await store.revoke_all(7) == 0
