"""RedisTerminus - indirected instances stored as JSON strings in Redis."""

from __future__ import annotations

import json
import logging
import math
from typing import TYPE_CHECKING, Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from indirector_core.domain.envelope import utcnow
from indirector_core.primitives.exceptions import TerminusError
from indirector_core.serialization import instance_from_wire, instance_to_wire
from indirector_core.terminus import Terminus

from .exceptions import RedisTerminusError

if TYPE_CHECKING:
    from indirector_core.indirection import Indirection
    from indirector_core.request import Request

logger = logging.getLogger("indirector.redis")

DEFAULT_PREFIX = "indirector"


class RedisTerminus(Terminus):
    """
    Terminus over a Redis keyspace, usable as a primary store or a cache.

    Keys are ``<prefix>:<indirection>:<key>`` and values are the JSON wire
    record of the instance. ``search`` treats the request key as a SCAN
    MATCH glob (``*`` when empty).

    With ``expire_keys`` the Redis key is given a TTL matching the
    instance's ``expiration`` (at least one second), so expired cache
    entries also leave Redis.
    """

    def __init__(
        self,
        indirection: Indirection,
        name: str | None = None,
        *,
        client: Redis | None = None,
        prefix: str = DEFAULT_PREFIX,
        expire_keys: bool = False,
    ) -> None:
        super().__init__(indirection, name)
        self._redis = client
        self.prefix = prefix
        self.expire_keys = expire_keys

    @property
    def redis(self) -> Redis:
        if self._redis is None:
            self._redis = Redis.from_url(self.settings.redis_url)
        return self._redis

    def redis_key(self, key: str | None) -> str:
        if not key:
            raise TerminusError(f"Invalid key {key!r} for {self.indirection_name}")
        return f"{self.prefix}:{self.indirection_name}:{key}"

    async def find(self, request: Request) -> Any | None:
        redis_key = self.redis_key(request.key)
        try:
            raw = await self.redis.get(redis_key)
        except RedisError as e:
            raise RedisTerminusError(f"Redis get failed for {redis_key}: {e}") from e
        if not raw:
            return None
        return self._load(redis_key, raw)

    async def save(self, request: Request) -> Any:
        if request.instance is None:
            raise TerminusError(f"Cannot save {request}: no instance given")
        redis_key = self.redis_key(request.key)
        body = json.dumps(instance_to_wire(request.instance), default=str)
        ttl = self._ttl_for(request.instance)
        try:
            if ttl:
                await self.redis.setex(redis_key, ttl, body)
            else:
                await self.redis.set(redis_key, body)
        except RedisError as e:
            raise RedisTerminusError(f"Redis set failed for {redis_key}: {e}") from e
        return request.instance

    async def search(self, request: Request) -> list[Any]:
        pattern = self.redis_key(request.key or "*")
        try:
            keys: list[Any] = []
            cursor: int = 0
            while True:
                cursor, batch = await self.redis.scan(cursor, match=pattern)
                keys.extend(batch)
                if cursor == 0:
                    break
            if not keys:
                return []
            keys = sorted(set(keys))
            values = await self.redis.mget(keys)
        except RedisError as e:
            raise RedisTerminusError(f"Redis search failed for {pattern}: {e}") from e
        return [
            self._load(_text(key), raw)
            for key, raw in zip(keys, values)
            if raw
        ]

    async def destroy(self, request: Request) -> bool:
        redis_key = self.redis_key(request.key)
        try:
            removed = await self.redis.delete(redis_key)
        except RedisError as e:
            raise RedisTerminusError(f"Redis delete failed for {redis_key}: {e}") from e
        return bool(removed)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    # ── Internals ────────────────────────────────────────────────

    def _ttl_for(self, instance: Any) -> int | None:
        if not self.expire_keys:
            return None
        expiration = getattr(instance, "expiration", None)
        if expiration is None:
            return None
        remaining = (expiration - utcnow()).total_seconds()
        return max(1, math.ceil(remaining))

    def _load(self, redis_key: str, raw: str | bytes) -> Any:
        try:
            return instance_from_wire(self.model, json.loads(raw))
        except ValueError as e:
            logger.warning("Could not parse %s: %s", redis_key, e)
            raise TerminusError(f"Could not parse {redis_key}: {e}") from e


def _text(value: str | bytes) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


__all__ = ["DEFAULT_PREFIX", "RedisTerminus"]
