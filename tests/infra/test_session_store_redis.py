"""Testes para o backend de sessão em Redis (cliente fake assíncrono)."""

from __future__ import annotations

import pytest

from ussd_menu.infra.session_store_redis import RedisSessionBackend


class FakeAsyncRedis:
    """Subconjunto de redis.asyncio.Redis usado pelo backend."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.ttls: dict[str, int] = {}

    async def hsetnx(self, key, field, value):
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return 0
        bucket[field] = value
        return 1

    async def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value
        return 1

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return key in self.hashes

    async def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.hashes.pop(key, None) is not None else 0


class TestRedisSessionBackend:
    @pytest.mark.asyncio
    async def test_start_creates_hash_with_ttl(self):
        client = FakeAsyncRedis()
        backend = RedisSessionBackend(client, ttl_seconds=120)

        await backend.start("abc")

        assert "ussd:session:abc" in client.hashes
        assert client.ttls["ussd:session:abc"] == 120

    @pytest.mark.asyncio
    async def test_values_are_json_encoded(self):
        client = FakeAsyncRedis()
        backend = RedisSessionBackend(client)
        await backend.start("abc")

        await backend.set("abc", "cart", {"items": [1, 2]})

        assert client.hashes["ussd:session:abc"]["cart"] == '{"items": [1, 2]}'
        assert await backend.get("abc", "cart") == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_bytes_payload_is_decoded(self):
        client = FakeAsyncRedis()
        client.hashes["ussd:session:abc"] = {"route": b'"1*2"'}
        backend = RedisSessionBackend(client)

        assert await backend.get("abc", "route") == "1*2"

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self):
        backend = RedisSessionBackend(FakeAsyncRedis())

        assert await backend.get("abc", "route") is None

    @pytest.mark.asyncio
    async def test_end_deletes_hash(self):
        client = FakeAsyncRedis()
        backend = RedisSessionBackend(client, key_prefix="test")
        await backend.start("abc")

        await backend.end("abc")

        assert "test:abc" not in client.hashes

    @pytest.mark.asyncio
    async def test_client_errors_propagate(self):
        class BrokenRedis(FakeAsyncRedis):
            async def hset(self, key, field, value):
                raise ConnectionError("redis down")

        backend = RedisSessionBackend(BrokenRedis())

        with pytest.raises(ConnectionError):
            await backend.set("abc", "route", "1")
