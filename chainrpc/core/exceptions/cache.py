"""
Cache-Related Exceptions
"""

from chainrpc.core.exceptions.base import ChainRpcError


class CacheError(ChainRpcError):
    """Base exception for cache-related errors."""
    pass


class CacheKeyError(CacheError):
    """
    Raised when operation parameters cannot be serialized into a cache key.

    The cache handles this itself by falling back to a coarser key, so
    callers never see it.
    """
    pass
