"""
Resilience Layer

- **endpoint_pool.py**: Endpoint records and the fixed endpoint pool
- **selector.py**: Round-robin selection over healthy endpoints
- **retry.py**: Exponential backoff executor (tenacity)
- **scheduler.py**: FIFO request queue drained by a background task
"""

from chainrpc.core.resilience.endpoint_pool import Endpoint, EndpointPool
from chainrpc.core.resilience.retry import RetryExecutor, RetryPolicy
from chainrpc.core.resilience.scheduler import QueuedRequest, RequestScheduler
from chainrpc.core.resilience.selector import EndpointSelector

__all__ = [
    "Endpoint",
    "EndpointPool",
    "EndpointSelector",
    "QueuedRequest",
    "RequestScheduler",
    "RetryExecutor",
    "RetryPolicy",
]
