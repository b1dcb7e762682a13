# legalchat/services/cache.py
"""
Response cache.

Two kinds of entries:
  ai:<mode>:<sha256(prompt)>      raw AI backend response for a repeated prompt
  user:<user_id>:conversations    the user's conversation list

Redis (redis.asyncio) is used when REDIS_URL is set and reachable, otherwise an
in-process TTL store. Cache failures are logged and behave like a miss.
"""
import hashlib
import json
import logging
import time
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

import redis.asyncio as redis

from legalchat.core.config import settings
from legalchat.observability.metrics import inc_counter
from legalchat.services.ai_backend.schemas import AIResponse, parse_ai_response

logger = logging.getLogger(__name__)


class MemoryCacheBackend:
    """In-process key/value store with per-key expiry"""

    def __init__(self, clock=time.monotonic):
        self._data: Dict[str, Tuple[float, str]] = {}
        self._lock = Lock()
        self._clock = clock

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._data[key] = (now + ttl, value)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._data.items() if expires_at <= now]
        for k in expired:
            del self._data[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    async def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in self._data if k.startswith(prefix)]
            for k in keys:
                del self._data[k]
        return len(keys)

    async def close(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCacheBackend:
    def __init__(self, client):
        self.client = client

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        await self.client.set(key, value, ex=ttl)

    async def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        async for key in self.client.scan_iter(match=f"{prefix}*"):
            deleted += await self.client.delete(key)
        return deleted

    async def close(self) -> None:
        await self.client.aclose()


async def create_cache_backend(redis_url: Optional[str] = None):
    """Connect to Redis if configured; fall back to the in-process store"""
    url = redis_url if redis_url is not None else settings.REDIS_URL
    if not url:
        logger.info("ℹ️ REDIS_URL not set, using in-process response cache")
        return MemoryCacheBackend()

    try:
        client = redis.from_url(url, encoding="utf8", decode_responses=True)
        await client.ping()
        logger.info("✅ Redis connected")
        return RedisCacheBackend(client)
    except Exception as e:
        logger.warning(f"⚠️ Redis not available ({e}), using in-process response cache")
        return MemoryCacheBackend()


class ResponseCache:
    def __init__(
            self,
            backend,
            ai_response_ttl: Optional[int] = None,
            conversation_list_ttl: Optional[int] = None
    ):
        self.backend = backend
        self.ai_response_ttl = ai_response_ttl or settings.AI_RESPONSE_CACHE_TTL
        self.conversation_list_ttl = conversation_list_ttl or settings.CONVERSATION_LIST_CACHE_TTL

    @staticmethod
    def ai_key(prompt: str, mode: str) -> str:
        digest = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
        return f"ai:{mode}:{digest}"

    @staticmethod
    def user_prefix(user_id: Any) -> str:
        return f"user:{user_id}:"

    async def _get_json(self, key: str) -> Any:
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning(f"⚠️ Cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Dropping undecodable cache entry {key}")
            return None

    async def _set_json(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.backend.set(key, json.dumps(value, default=str), ttl)
        except Exception as e:
            logger.warning(f"⚠️ Cache write failed for {key}: {e}")

    async def lookup(self, prompt: str, mode: str) -> Optional[AIResponse]:
        payload = await self._get_json(self.ai_key(prompt, mode))
        if not isinstance(payload, dict):
            inc_counter("ai_response_cache_total", result="miss")
            return None
        try:
            response = parse_ai_response(payload)
        except ValueError:
            logger.warning("⚠️ Cached AI response has an unexpected shape, ignoring it")
            inc_counter("ai_response_cache_total", result="miss")
            return None
        inc_counter("ai_response_cache_total", result="hit")
        return response

    async def store(self, prompt: str, mode: str, response: AIResponse) -> None:
        await self._set_json(
            self.ai_key(prompt, mode),
            response.model_dump(mode="json"),
            self.ai_response_ttl
        )

    async def get_conversation_list(self, user_id: Any) -> Optional[List[Dict[str, Any]]]:
        payload = await self._get_json(f"{self.user_prefix(user_id)}conversations")
        return payload if isinstance(payload, list) else None

    async def set_conversation_list(self, user_id: Any, items: List[Dict[str, Any]]) -> None:
        await self._set_json(
            f"{self.user_prefix(user_id)}conversations",
            items,
            self.conversation_list_ttl
        )

    async def invalidate_user(self, user_id: Any) -> None:
        try:
            removed = await self.backend.delete_prefix(self.user_prefix(user_id))
            logger.debug(f"Cleared {removed} cache entries for user {user_id}")
        except Exception as e:
            logger.warning(f"⚠️ Cache invalidation failed for user {user_id}: {e}")

    async def close(self) -> None:
        await self.backend.close()
