import asyncio

from legalchat.observability.metrics import get_counter
from legalchat.services import cache as cache_module
from legalchat.services.ai_backend import parse_ai_response
from legalchat.services.cache import MemoryCacheBackend, ResponseCache, create_cache_backend


def _cache(**kwargs):
    return ResponseCache(MemoryCacheBackend(), **kwargs)


def test_store_then_lookup_returns_typed_response():
    cache = _cache()
    response = parse_ai_response({"response": "agent", "session_id": "s-1"}, kind="agent_chat")

    async def scenario():
        await cache.store("What is a tort?", "AGENTIC", response)
        return await cache.lookup("What is a tort?", "AGENTIC")

    cached = asyncio.run(scenario())
    assert cached.kind == "agent_chat"
    assert cached.session_id == "s-1"
    assert get_counter("ai_response_cache_total", result="hit") == 1


def test_lookup_is_keyed_by_mode():
    cache = _cache()
    response = parse_ai_response({"response": "plain"}, kind="chat")

    async def scenario():
        await cache.store("Same prompt", "NORMAL", response)
        return await cache.lookup("Same prompt", "AGENTIC")

    assert asyncio.run(scenario()) is None
    assert get_counter("ai_response_cache_total", result="miss") == 1


def test_entries_expire():
    clock = {"now": 1000.0}
    cache = ResponseCache(MemoryCacheBackend(clock=lambda: clock["now"]), ai_response_ttl=10)
    response = parse_ai_response({"response": "plain"}, kind="chat")

    async def scenario():
        await cache.store("p", "NORMAL", response)
        first = await cache.lookup("p", "NORMAL")
        clock["now"] += 11
        second = await cache.lookup("p", "NORMAL")
        return first, second

    first, second = asyncio.run(scenario())
    assert first is not None
    assert second is None


def test_expired_entries_are_purged_on_write():
    clock = {"now": 0.0}
    backend = MemoryCacheBackend(clock=lambda: clock["now"])

    async def scenario():
        for i in range(1000):
            await backend.set(f"ai:NORMAL:{i}", "answer", 10)
        await backend.set("user:1:conversations", "[]", 5000)
        before = len(backend)
        clock["now"] = 100.0
        await backend.set("ai:NORMAL:fresh", "answer", 10)
        return before, len(backend)

    before, after = asyncio.run(scenario())
    assert before == 1001
    assert after == 2


def test_invalidate_user_only_touches_that_user():
    cache = _cache()

    async def scenario():
        await cache.set_conversation_list("u1", [{"id": "a"}])
        await cache.set_conversation_list("u2", [{"id": "b"}])
        await cache.invalidate_user("u1")
        return await cache.get_conversation_list("u1"), await cache.get_conversation_list("u2")

    u1, u2 = asyncio.run(scenario())
    assert u1 is None
    assert u2 == [{"id": "b"}]


def test_backend_failure_behaves_like_miss():
    class BrokenBackend(MemoryCacheBackend):
        async def get(self, key):
            raise ConnectionError("redis down")

        async def set(self, key, value, ttl):
            raise ConnectionError("redis down")

        async def delete_prefix(self, prefix):
            raise ConnectionError("redis down")

    cache = ResponseCache(BrokenBackend())
    response = parse_ai_response({"response": "plain"}, kind="chat")

    async def scenario():
        await cache.store("p", "NORMAL", response)
        await cache.invalidate_user("u1")
        return await cache.lookup("p", "NORMAL")

    assert asyncio.run(scenario()) is None


def test_undecodable_entry_is_ignored():
    backend = MemoryCacheBackend()
    cache = ResponseCache(backend)

    async def scenario():
        await backend.set(ResponseCache.ai_key("p", "NORMAL"), "{not json", 60)
        return await cache.lookup("p", "NORMAL")

    assert asyncio.run(scenario()) is None


def test_without_redis_url_memory_backend_is_used():
    backend = asyncio.run(create_cache_backend(redis_url=""))
    assert isinstance(backend, MemoryCacheBackend)


def test_unreachable_redis_falls_back_to_memory(monkeypatch):
    class FailingRedis:
        async def ping(self):
            raise ConnectionError("refused")

    monkeypatch.setattr(cache_module.redis, "from_url", lambda *args, **kwargs: FailingRedis())
    backend = asyncio.run(create_cache_backend(redis_url="redis://localhost:6399/0"))
    assert isinstance(backend, MemoryCacheBackend)
