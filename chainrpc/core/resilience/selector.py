"""
Endpoint Selector - round-robin over the healthy subset.
"""

from chainrpc.core.resilience.endpoint_pool import Endpoint, EndpointPool


class EndpointSelector:
    """
    Picks the next endpoint for a single request.

    The counter only ever increases and is taken modulo the size of the
    healthy subset at selection time, so calls keep cycling fairly even as
    endpoints drop out of or rejoin the subset.
    """

    def __init__(self, pool: EndpointPool):
        self._pool = pool
        self._counter = 0

    @property
    def position(self) -> int:
        """Current value of the round-robin counter."""
        return self._counter

    def select(self) -> Endpoint | None:
        """
        Returns:
            The next healthy endpoint, or None when no endpoint is healthy
        """
        healthy = self._pool.healthy_endpoints()
        if not healthy:
            return None

        endpoint = healthy[self._counter % len(healthy)]
        self._counter += 1
        return endpoint
