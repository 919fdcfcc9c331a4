"""Read-through JSON cache backed by Redis.

The cache is an accelerator only. Every Redis failure is logged and then
treated as a miss (reads) or a no-op (writes and deletes), so callers fall
back to the database instead of failing the request.

Key scheme::

    post:{postId}:{viewerId|anonymous}
    feed:{userId}:{page}:{limit}
    followers:{userId}:{page}:{limit}
    following:{userId}:{page}:{limit}
    user:profile:{userId}
    user:own:{userId}
    search:{kind}:{md5(sorted params)}
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any, Final, TypeVar

import redis
from pydantic import BaseModel

from threadline.core.settings import settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ANONYMOUS: Final[str] = "anonymous"
CACHE_ERRORS: Final = (redis.RedisError, OSError)
_SCAN_BATCH: Final[int] = 500


# --- Key builders ---------------------------------------------------------------


def post_key(post_id: int, viewer_id: int | None) -> str:
    return f"post:{post_id}:{ANONYMOUS if viewer_id is None else viewer_id}"


def post_pattern(post_id: int) -> str:
    return f"post:{post_id}:*"


def viewer_posts_pattern(viewer_id: int) -> str:
    """Every cached post detail rendered for one viewer."""
    return f"post:*:{viewer_id}"


def feed_key(user_id: int, page: int, limit: int) -> str:
    return f"feed:{user_id}:{page}:{limit}"


def feed_pattern(user_id: int) -> str:
    return f"feed:{user_id}:*"


def followers_key(user_id: int, page: int, limit: int) -> str:
    return f"followers:{user_id}:{page}:{limit}"


def followers_pattern(user_id: int) -> str:
    return f"followers:{user_id}:*"


def following_key(user_id: int, page: int, limit: int) -> str:
    return f"following:{user_id}:{page}:{limit}"


def following_pattern(user_id: int) -> str:
    return f"following:{user_id}:*"


def profile_key(user_id: int) -> str:
    return f"user:profile:{user_id}"


def own_profile_key(user_id: int) -> str:
    return f"user:own:{user_id}"


def search_key(kind: str, params: Mapping[str, Any]) -> str:
    """Return ``search:{kind}:{digest}`` for a parameter mapping.

    Parameters are serialized with sorted keys so that argument order never
    changes the key.
    """
    canonical = json.dumps(params, sort_keys=True, default=str, separators=(",", ":"))
    digest = hashlib.md5(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"search:{kind}:{digest}"


# --- Client ---------------------------------------------------------------------


class CacheClient:
    """JSON get/set/delete over Redis that never raises on store failures."""

    def __init__(self, client: redis.Redis | None = None, *, enabled: bool | None = None) -> None:
        self._client = client
        self.enabled = settings.cache_enabled if enabled is None else enabled

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_timeout=settings.cache_socket_timeout_seconds,
                socket_connect_timeout=settings.cache_socket_timeout_seconds,
            )
        return self._client

    def set_client(self, client: redis.Redis | None) -> None:
        """Swap the underlying Redis client (``None`` reconnects lazily)."""
        self._client = client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored at ``key`` or ``None`` on miss or failure."""
        if not self.enabled:
            return None
        try:
            raw = self.client.get(key)
        except CACHE_ERRORS as err:
            logger.warning("Cache read failed for %s: %s", key, err)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` as one JSON document with an expiry."""
        if not self.enabled:
            return
        try:
            self.client.set(key, json.dumps(value, default=str), ex=ttl_seconds)
        except CACHE_ERRORS as err:
            logger.warning("Cache write failed for %s: %s", key, err)

    def delete(self, key: str) -> None:
        if not self.enabled:
            return
        try:
            self.client.delete(key)
        except CACHE_ERRORS as err:
            logger.warning("Cache delete failed for %s: %s", key, err)

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; return how many were removed.

        Uses incremental ``SCAN`` so large keyspaces never block the server.
        """
        if not self.enabled:
            return 0
        removed = 0
        try:
            batch: list[str] = []
            for key in self.client.scan_iter(match=pattern, count=_SCAN_BATCH):
                batch.append(key)
                if len(batch) >= _SCAN_BATCH:
                    removed += int(self.client.delete(*batch))
                    batch.clear()
            if batch:
                removed += int(self.client.delete(*batch))
        except CACHE_ERRORS as err:
            logger.warning("Cache pattern delete failed for %s: %s", pattern, err)
        return removed

    def read_through(
        self,
        key: str,
        ttl_seconds: int,
        model: type[ModelT],
        loader: Callable[[], ModelT],
    ) -> ModelT:
        """Return the cached ``model`` at ``key``, or load, store and return it.

        Entries that no longer validate against ``model`` are treated as misses.
        """
        cached = self.get_json(key)
        if cached is not None:
            try:
                return model.model_validate(cached)
            except ValueError:
                logger.warning("Discarding stale cache entry %s", key)
        value = loader()
        self.set_json(key, value.model_dump(mode="json", by_alias=True), ttl_seconds)
        return value


_cache = CacheClient()


def get_cache() -> CacheClient:
    """Return the process-wide cache client."""
    return _cache
