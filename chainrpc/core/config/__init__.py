"""
Configuration Module

Type-safe configuration for the resilient RPC client.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Thresholds, default timings, and enums (Stage, OperationKind)

Environment Variables:
---------------------
```bash
RPC_ENDPOINTS='["https://node-a.example", "https://node-b.example"]'
RPC_PRIMARY_URL=https://my-dedicated-node.example
RPC_TIMEOUT=10

SCHEDULER_REQUESTS_PER_SECOND=10
SCHEDULER_BURST_LIMIT=20

RETRY_MAX_RETRIES=3
RETRY_BASE_DELAY=1.0

CACHE_TTL_BALANCE=15

LOG_LEVEL=INFO
LOG_FORMAT=json
```

Testing:
-------
```python
import os
from chainrpc.core.config import reload_settings

os.environ["LOG_LEVEL"] = "DEBUG"
settings = reload_settings()
```
"""

from chainrpc.core.config.constants import (
    CACHE_MAX_SIZE,
    DEFAULT_RPC_ENDPOINTS,
    ENDPOINT_FAILURE_THRESHOLD,
    ENDPOINT_FORCE_RESET_THRESHOLD,
    HEALTH_CHECK_INTERVAL,
    HEALTH_CHECK_TIMEOUT,
    MAX_RETRIES,
    NO_HEALTHY_ENDPOINTS_MESSAGE,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
    SCHEDULER_BURST_LIMIT,
    SCHEDULER_DRAIN_INTERVAL,
    SCHEDULER_REQUESTS_PER_SECOND,
    TRANSPORT_TIMEOUT,
    OperationKind,
    Stage,
)
from chainrpc.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "OperationKind",
    # Health
    "ENDPOINT_FAILURE_THRESHOLD",
    "ENDPOINT_FORCE_RESET_THRESHOLD",
    "HEALTH_CHECK_INTERVAL",
    "HEALTH_CHECK_TIMEOUT",
    # Scheduler
    "SCHEDULER_DRAIN_INTERVAL",
    "SCHEDULER_REQUESTS_PER_SECOND",
    "SCHEDULER_BURST_LIMIT",
    # Retry
    "MAX_RETRIES",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "RETRY_BACKOFF_MULTIPLIER",
    # Cache / transport
    "CACHE_MAX_SIZE",
    "TRANSPORT_TIMEOUT",
    "DEFAULT_RPC_ENDPOINTS",
    "NO_HEALTHY_ENDPOINTS_MESSAGE",
]
