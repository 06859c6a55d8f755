"""
Read Operations

The closed set of read operations the client supports. Each operation is
an immutable value object that knows its kind (used for default TTLs and
cache keys), the parameters that identify it for caching, and how to run
itself against one transport.

Dispatch goes through a type-keyed table; any other object is rejected
with UnsupportedOperationError before it reaches an endpoint.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar

from chainrpc.client.calldata import encode_call, is_address, validate_block, validate_selector
from chainrpc.core.config.constants import OperationKind
from chainrpc.core.exceptions import UnsupportedOperationError
from chainrpc.core.interfaces.transport import BlockTag, RpcTransport


@dataclass(frozen=True)
class GetChainHead:
    """Latest block number."""

    kind: ClassVar[OperationKind] = OperationKind.CHAIN_HEAD

    def cache_params(self) -> list[Any]:
        return []


@dataclass(frozen=True)
class ReadState:
    """
    Read-only contract call.

    ``selector`` is the 4-byte function selector (e.g. "0x70a08231" for
    balanceOf) and ``args`` its static arguments. Use ``ReadState.raw``
    when the call data is already encoded.
    """

    kind: ClassVar[OperationKind] = OperationKind.READ_STATE

    target: str
    selector: str
    args: tuple = ()
    block: BlockTag = "latest"
    data: str = ""

    def __post_init__(self):
        if not is_address(self.target):
            raise ValueError(f"Contract address must be a 20-byte hex string, got {self.target!r}")
        validate_block(self.block)
        if not self.data:
            object.__setattr__(self, "data", encode_call(self.selector, tuple(self.args)))

    @classmethod
    def raw(cls, target: str, data: str, block: BlockTag = "latest") -> "ReadState":
        validate_selector(data[:10])
        return cls(target=target, selector=data[:10], block=block, data=data)

    def cache_params(self) -> list[Any]:
        return [{"address": self.target.lower(), "data": self.data, "block": self.block}]


@dataclass(frozen=True)
class BatchRead:
    """Several contract reads executed as one round trip."""

    kind: ClassVar[OperationKind] = OperationKind.BATCH_READ

    calls: tuple[ReadState, ...]
    block: BlockTag = "latest"

    def __post_init__(self):
        object.__setattr__(self, "calls", tuple(self.calls))
        if not self.calls:
            raise ValueError("BatchRead needs at least one call")
        validate_block(self.block)

    def cache_params(self) -> list[Any]:
        return [
            {
                "calls": [{"address": call.target.lower(), "data": call.data} for call in self.calls],
                "block": self.block,
            }
        ]


@dataclass(frozen=True)
class GetBalance:
    kind: ClassVar[OperationKind] = OperationKind.BALANCE

    address: str
    block: BlockTag = "latest"

    def __post_init__(self):
        if not is_address(self.address):
            raise ValueError(f"Address must be a 20-byte hex string, got {self.address!r}")
        validate_block(self.block)

    def cache_params(self) -> list[Any]:
        return [{"address": self.address.lower(), "block": self.block}]


@dataclass(frozen=True)
class GetTransaction:
    kind: ClassVar[OperationKind] = OperationKind.TRANSACTION

    tx_hash: str

    def cache_params(self) -> list[Any]:
        return [{"hash": self.tx_hash.lower()}]


@dataclass(frozen=True)
class GetTransactionReceipt:
    kind: ClassVar[OperationKind] = OperationKind.TRANSACTION_RECEIPT

    tx_hash: str

    def cache_params(self) -> list[Any]:
        return [{"hash": self.tx_hash.lower()}]


@dataclass(frozen=True)
class GetLogs:
    """
    Event logs matching a filter.

    ``log_filter`` uses the eth_getLogs field names (address, topics,
    fromBlock, toBlock, blockHash); block bounds may be ints.
    """

    kind: ClassVar[OperationKind] = OperationKind.LOGS

    log_filter: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for key in ("fromBlock", "toBlock"):
            if key in self.log_filter:
                validate_block(self.log_filter[key])

    def cache_params(self) -> list[Any]:
        return [self.log_filter]


@dataclass(frozen=True)
class GetBlock:
    """Block by number, tag or 32-byte hash."""

    kind: ClassVar[OperationKind] = OperationKind.BLOCK

    identifier: BlockTag = "latest"
    full_transactions: bool = False

    def __post_init__(self):
        validate_block(self.identifier)

    def cache_params(self) -> list[Any]:
        return [{"block": self.identifier, "full": self.full_transactions}]


Operation = (
    GetChainHead
    | ReadState
    | BatchRead
    | GetBalance
    | GetTransaction
    | GetTransactionReceipt
    | GetLogs
    | GetBlock
)


async def _chain_head(transport: RpcTransport, op: GetChainHead) -> int:
    return await transport.get_block_number()


async def _read_state(transport: RpcTransport, op: ReadState) -> str:
    return await transport.call(op.target, op.data, op.block)


async def _batch_read(transport: RpcTransport, op: BatchRead) -> list[str]:
    return await transport.batch_call([(call.target, call.data) for call in op.calls], op.block)


async def _balance(transport: RpcTransport, op: GetBalance) -> int:
    return await transport.get_balance(op.address, op.block)


async def _transaction(transport: RpcTransport, op: GetTransaction) -> dict[str, Any] | None:
    return await transport.get_transaction(op.tx_hash)


async def _receipt(transport: RpcTransport, op: GetTransactionReceipt) -> dict[str, Any] | None:
    return await transport.get_transaction_receipt(op.tx_hash)


async def _logs(transport: RpcTransport, op: GetLogs) -> list[dict[str, Any]]:
    return await transport.get_logs(op.log_filter)


async def _block(transport: RpcTransport, op: GetBlock) -> dict[str, Any] | None:
    return await transport.get_block(op.identifier, op.full_transactions)


_HANDLERS: dict[type, Callable[[RpcTransport, Any], Awaitable[Any]]] = {
    GetChainHead: _chain_head,
    ReadState: _read_state,
    BatchRead: _batch_read,
    GetBalance: _balance,
    GetTransaction: _transaction,
    GetTransactionReceipt: _receipt,
    GetLogs: _logs,
    GetBlock: _block,
}


def ensure_supported(operation: Any) -> None:
    """
    Raises:
        UnsupportedOperationError: If ``operation`` is not a known read
    """
    if type(operation) not in _HANDLERS:
        raise UnsupportedOperationError(
            f"Unsupported operation: {type(operation).__name__}",
            details={"operation": repr(operation)[:200]},
        )


async def dispatch_operation(transport: RpcTransport, operation: Any) -> Any:
    """Run one operation against one transport."""
    ensure_supported(operation)
    return await _HANDLERS[type(operation)](transport, operation)
