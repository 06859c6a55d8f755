"""
chainrpc - resilient multi-endpoint JSON-RPC read client.

```python
from chainrpc import ResilientRpcClient

async with ResilientRpcClient() as client:
    head = await client.get_chain_head()
```
"""

from chainrpc.client import (
    BatchRead,
    GetBalance,
    GetBlock,
    GetChainHead,
    GetLogs,
    GetTransaction,
    GetTransactionReceipt,
    ReadState,
    ResilientRpcClient,
)
from chainrpc.core.config import Settings, get_settings
from chainrpc.core.exceptions import (
    ChainRpcError,
    JsonRpcResponseError,
    NoHealthyEndpointsError,
    SchedulerClosedError,
    TransportError,
    TransportTimeoutError,
    UnsupportedOperationError,
)
from chainrpc.core.logging import setup_logging
from chainrpc.core.resilience import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "BatchRead",
    "ChainRpcError",
    "GetBalance",
    "GetBlock",
    "GetChainHead",
    "GetLogs",
    "GetTransaction",
    "GetTransactionReceipt",
    "JsonRpcResponseError",
    "NoHealthyEndpointsError",
    "ReadState",
    "ResilientRpcClient",
    "RetryPolicy",
    "SchedulerClosedError",
    "Settings",
    "TransportError",
    "TransportTimeoutError",
    "UnsupportedOperationError",
    "get_settings",
    "setup_logging",
]
