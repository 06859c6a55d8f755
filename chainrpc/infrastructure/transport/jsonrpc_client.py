"""
JSON-RPC HTTP Transport
=======================

Asynchronous HTTP client for one Ethereum-compatible JSON-RPC endpoint.

The transport performs exactly one HTTP round trip per call and never
retries: retry, failover and health bookkeeping belong to the scheduler.
Every failure is mapped to the TransportError family so callers see one
error vocabulary regardless of the underlying cause:

- httpx.TimeoutException  → TransportTimeoutError
- non-2xx HTTP status     → TransportError (status code in details)
- malformed body          → TransportError
- JSON-RPC ``error``      → JsonRpcResponseError (code in details)

USAGE PATTERNS
--------------
```python
async with JsonRpcTransport("https://worldchain-mainnet.g.alchemy.com/public") as rpc:
    head = await rpc.get_block_number()
    balance = await rpc.get_balance("0x...")
```

Without the context manager the HTTP client is created lazily on first use
and released by ``aclose()``.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx
import orjson
from pydantic import BaseModel, Field

from chainrpc.core.config.constants import (
    JSONRPC_VERSION,
    TRANSPORT_MAX_CONNECTIONS,
    TRANSPORT_TIMEOUT,
)
from chainrpc.core.exceptions import (
    JsonRpcResponseError,
    TransportError,
    TransportTimeoutError,
)
from chainrpc.core.interfaces.transport import BlockTag
from chainrpc.core.logging import get_logger

logger = get_logger(__name__)


class TransportConfig(BaseModel):
    """
    Connection settings for one endpoint.

    Example:
        config = TransportConfig(url="https://worldchain.drpc.org", timeout=5.0)
    """

    model_config = {"frozen": True}

    url: str = Field(description="JSON-RPC endpoint URL")
    timeout: float = Field(default=TRANSPORT_TIMEOUT, gt=0, le=120, description="Request timeout in seconds")
    max_connections: int = Field(
        default=TRANSPORT_MAX_CONNECTIONS, ge=1, le=100, description="Maximum HTTP connections in pool"
    )


def encode_block(block: BlockTag) -> str:
    """Render a block number or tag as a JSON-RPC block parameter."""
    if isinstance(block, bool):
        raise TypeError("block must be an int or a tag string")
    if isinstance(block, int):
        if block < 0:
            raise ValueError("block number must be non-negative")
        return hex(block)
    return block


def decode_quantity(value: Any) -> int:
    """Parse a JSON-RPC hex quantity ("0x1a") into an int."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise TransportError(
            "Expected a hex quantity in JSON-RPC result",
            details={"result": repr(value)[:100]},
        )
    try:
        return int(value, 16)
    except ValueError as e:
        raise TransportError.from_exception(e, "Invalid hex quantity in JSON-RPC result", result=value) from e


class JsonRpcTransport:
    """
    JSON-RPC 2.0 client bound to a single endpoint URL.

    Attributes:
        url: Endpoint URL
        config: Validated connection settings
    """

    def __init__(
        self,
        url: str,
        timeout: float = TRANSPORT_TIMEOUT,
        max_connections: int = TRANSPORT_MAX_CONNECTIONS,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = TransportConfig(url=url, timeout=timeout, max_connections=max_connections)
        self.url = self.config.url
        self._client = client
        self._ids = itertools.count(1)

    async def __aenter__(self) -> JsonRpcTransport:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=max(1, self.config.max_connections // 2),
                ),
                headers={"Content-Type": "application/json"},
            )
            logger.debug(
                "HTTP client initialized",
                endpoint=self.url,
                max_connections=self.config.max_connections,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            logger.debug("HTTP client closed", endpoint=self.url)
        self._client = None

    def _payload(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": next(self._ids), "method": method, "params": params}

    async def _post(self, body: Any, method: str) -> Any:
        client = self._ensure_client()

        try:
            response = await client.post(self.url, content=orjson.dumps(body))
            response.raise_for_status()

        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"RPC request timed out after {self.config.timeout}s",
                details={"endpoint": self.url, "method": method, "timeout": self.config.timeout},
            ) from e

        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Endpoint returned HTTP {e.response.status_code}",
                details={
                    "endpoint": self.url,
                    "method": method,
                    "status_code": e.response.status_code,
                    "response_text": e.response.text[:500] if e.response.text else None,
                },
            ) from e

        except httpx.HTTPError as e:
            raise TransportError(
                f"Cannot reach RPC endpoint: {e}",
                details={"endpoint": self.url, "method": method, "error_type": type(e).__name__},
            ) from e

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise TransportError(
                "Endpoint returned a non-JSON body",
                details={"endpoint": self.url, "method": method, "body": response.text[:200]},
            ) from e

    def _unwrap(self, message: Any, method: str) -> Any:
        if not isinstance(message, dict):
            raise TransportError(
                "Malformed JSON-RPC response",
                details={"endpoint": self.url, "method": method},
            )

        error = message.get("error")
        if error is not None:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            raise JsonRpcResponseError(
                f"RPC error from {method}: {error.get('message', 'unknown error')}",
                code=error.get("code"),
                details={"endpoint": self.url, "method": method, "data": error.get("data")},
            )

        if "result" not in message:
            raise TransportError(
                "JSON-RPC response has neither result nor error",
                details={"endpoint": self.url, "method": method},
            )
        return message["result"]

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Send one JSON-RPC request and return its ``result``.

        Raises:
            TransportTimeoutError: Request exceeded the timeout
            JsonRpcResponseError: Endpoint answered with an error object
            TransportError: Any other network, HTTP or decoding failure
        """
        payload = self._payload(method, params or [])
        logger.debug("RPC request", endpoint=self.url, method=method, request_id=payload["id"])
        message = await self._post(payload, method)
        return self._unwrap(message, method)

    async def batch(self, calls: list[tuple[str, list[Any]]]) -> list[Any]:
        """
        Send several requests as one JSON-RPC batch.

        Results are returned in the order of ``calls``. Any error inside
        the batch fails the whole batch.
        """
        if not calls:
            return []

        payloads = [self._payload(method, params) for method, params in calls]
        label = f"batch[{len(payloads)}]"
        messages = await self._post(payloads, label)

        if not isinstance(messages, list):
            # some nodes answer a rejected batch with a single error object
            self._unwrap(messages, label)
            raise TransportError(
                "Batch response is not a list",
                details={"endpoint": self.url, "method": label},
            )

        by_id = {message.get("id"): message for message in messages if isinstance(message, dict)}
        results = []
        for payload in payloads:
            message = by_id.get(payload["id"])
            if message is None:
                raise TransportError(
                    "Batch response is missing an entry",
                    details={"endpoint": self.url, "method": payload["method"], "id": payload["id"]},
                )
            results.append(self._unwrap(message, payload["method"]))
        return results

    # -------------------------------------------------------------------------
    # Read methods
    # -------------------------------------------------------------------------

    async def get_block_number(self) -> int:
        return decode_quantity(await self.request("eth_blockNumber"))

    async def call(self, to: str, data: str, block: BlockTag = "latest") -> str:
        return await self.request("eth_call", [{"to": to, "data": data}, encode_block(block)])

    async def batch_call(self, calls: list[tuple[str, str]], block: BlockTag = "latest") -> list[str]:
        tag = encode_block(block)
        return await self.batch([("eth_call", [{"to": to, "data": data}, tag]) for to, data in calls])

    async def get_balance(self, address: str, block: BlockTag = "latest") -> int:
        return decode_quantity(await self.request("eth_getBalance", [address, encode_block(block)]))

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.request("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def get_logs(self, log_filter: dict[str, Any]) -> list[dict[str, Any]]:
        params = dict(log_filter)
        for key in ("fromBlock", "toBlock"):
            if key in params:
                params[key] = encode_block(params[key])
        return await self.request("eth_getLogs", [params])

    async def get_block(self, identifier: BlockTag, full_transactions: bool = False) -> dict[str, Any] | None:
        if isinstance(identifier, str) and identifier.startswith("0x") and len(identifier) == 66:
            return await self.request("eth_getBlockByHash", [identifier, full_transactions])
        return await self.request("eth_getBlockByNumber", [encode_block(identifier), full_transactions])
