"""
Response Cache

In-process TTL cache for read results, keyed by operation kind plus
canonical JSON of the parameters:

    "<operation>:<canonical params JSON>"

Expired entries are removed lazily on lookup, and all of them are swept at
once whenever an insert leaves the cache holding more than ``max_size``
entries. There is no LRU eviction: if every entry is still live the cache
can stay above ``max_size`` until entries expire.

The cache is used from a single event loop and never awaits, so no lock is
needed.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import orjson

from chainrpc.core.config.constants import CACHE_MAX_SIZE, Stage
from chainrpc.core.exceptions import CacheKeyError
from chainrpc.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    value: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


def _canonicalize(value: Any) -> Any:
    """
    Convert parameters to a JSON-safe form.

    Integers become decimal strings so arbitrary-precision values (token
    amounts, uint256 arguments) serialize exactly; bytes become 0x-hex.
    """
    if isinstance(value, bool) or value is None or isinstance(value, str | float):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, bytes | bytearray):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_canonicalize(item) for item in value]
    raise CacheKeyError(
        f"Cannot serialize {type(value).__name__} into a cache key",
        details={"value_type": type(value).__name__},
    )


def build_cache_key(operation: str, params: Sequence[Any]) -> str:
    """
    Build the cache key for an operation.

    Key order inside dict parameters does not matter; the same parameters
    always produce the same key.

    Raises:
        CacheKeyError: If a parameter cannot be serialized
    """
    try:
        encoded = orjson.dumps(_canonicalize(list(params)), option=orjson.OPT_SORT_KEYS)
    except orjson.JSONEncodeError as e:
        raise CacheKeyError.from_exception(e, operation=operation) from e
    return f"{operation}:{encoded.decode()}"


class ResponseCache:
    """
    TTL cache for RPC responses.

    Usage:
        cache = ResponseCache()
        key = cache.build_key("getBalance", [{"address": addr}])
        cache.set(key, balance, ttl=15)
        cached = cache.get(key)

    Args:
        max_size: Entry count above which an insert triggers a full sweep
        clock: Monotonic time source in seconds (injectable for tests)
    """

    def __init__(self, max_size: int = CACHE_MAX_SIZE, clock: Callable[[], float] = time.monotonic):
        self._max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def build_key(self, operation: str, params: Sequence[Any]) -> str:
        """
        Build a key, falling back to a plain string rendering when the
        parameters cannot be serialized canonically.
        """
        try:
            return build_cache_key(operation, params)
        except CacheKeyError as e:
            fallback = f"{operation}:{','.join(str(p) for p in params)}"
            logger.warning(
                "Cache key serialization failed, using fallback key",
                stage=Stage.CACHE_LOOKUP.value,
                operation=operation,
                error=e.message,
            )
            return fallback

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the cached value, or ``default`` if absent or expired.

        An expired entry is removed as a side effect.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return default

        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._misses += 1
            return default

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value, replacing any previous entry for the key."""
        self._entries[key] = CacheEntry(value=value, timestamp=self._clock(), ttl=ttl)

        if len(self._entries) > self._max_size:
            removed = self.sweep_expired()
            log_stage(
                logger,
                Stage.CACHE_STORE,
                "Cache size limit exceeded, swept expired entries",
                level="debug",
                removed=removed,
                size=len(self._entries),
            )

    def sweep_expired(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0.0,
        }
