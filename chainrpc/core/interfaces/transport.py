"""
RPC Transport Interface

Defines the contract every endpoint transport implements. The rest of the
client treats an endpoint as an opaque object exposing these read calls;
JsonRpcTransport is the HTTP implementation and tests supply fakes.
"""

from typing import Any, Protocol, runtime_checkable

BlockTag = int | str  # block number or tag ("latest", "safe", "finalized", ...)


@runtime_checkable
class RpcTransport(Protocol):
    """
    Read-only JSON-RPC capability of one endpoint.

    Every method raises a TransportError subclass on failure.
    """

    url: str

    async def get_block_number(self) -> int:
        """Latest block number (eth_blockNumber)."""
        ...

    async def call(self, to: str, data: str, block: BlockTag = "latest") -> str:
        """Execute a read-only contract call (eth_call); returns raw hex data."""
        ...

    async def batch_call(self, calls: list[tuple[str, str]], block: BlockTag = "latest") -> list[str]:
        """Execute several eth_call requests in one JSON-RPC batch."""
        ...

    async def get_balance(self, address: str, block: BlockTag = "latest") -> int:
        """Native balance in wei (eth_getBalance)."""
        ...

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Transaction by hash (eth_getTransactionByHash)."""
        ...

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Receipt by transaction hash (eth_getTransactionReceipt)."""
        ...

    async def get_logs(self, log_filter: dict[str, Any]) -> list[dict[str, Any]]:
        """Logs matching a filter (eth_getLogs)."""
        ...

    async def get_block(self, identifier: BlockTag, full_transactions: bool = False) -> dict[str, Any] | None:
        """Block by number, tag or hash."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
