"""
Exception Module

Structured exception hierarchy for the resilient RPC client.

Module Structure:
-----------------
- **base.py**: ChainRpcError base class + ConfigurationError
- **transport.py**: Single-call failures (network, HTTP status, JSON-RPC error)
- **endpoint.py**: Pool-wide failures (no healthy endpoints)
- **operation.py**: Unsupported operations
- **cache.py**: Cache key serialization errors
- **scheduler.py**: Request queue lifecycle errors

Usage:
------
```python
from chainrpc.core.exceptions import NoHealthyEndpointsError, TransportError
```
"""

# Base exception
from chainrpc.core.exceptions.base import ChainRpcError, ConfigurationError

# Cache exceptions
from chainrpc.core.exceptions.cache import CacheError, CacheKeyError

# Endpoint exceptions
from chainrpc.core.exceptions.endpoint import EndpointError, NoHealthyEndpointsError

# Operation exceptions
from chainrpc.core.exceptions.operation import UnsupportedOperationError

# Scheduler exceptions
from chainrpc.core.exceptions.scheduler import SchedulerClosedError, SchedulerError

# Transport exceptions
from chainrpc.core.exceptions.transport import (
    JsonRpcResponseError,
    TransportError,
    TransportTimeoutError,
)

__all__ = [
    # Base
    "ChainRpcError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheKeyError",
    # Endpoint
    "EndpointError",
    "NoHealthyEndpointsError",
    # Operation
    "UnsupportedOperationError",
    # Scheduler
    "SchedulerError",
    "SchedulerClosedError",
    # Transport
    "TransportError",
    "TransportTimeoutError",
    "JsonRpcResponseError",
]
