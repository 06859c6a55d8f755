from chainrpc.infrastructure.cache.response_cache import (
    CacheEntry,
    ResponseCache,
    build_cache_key,
)

__all__ = ["CacheEntry", "ResponseCache", "build_cache_key"]
