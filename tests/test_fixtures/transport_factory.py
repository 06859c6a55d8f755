"""
Transport Test Factory

Controllable in-memory transports standing in for JSON-RPC endpoints.
"""

import asyncio
from typing import Any

from chainrpc.core.exceptions import TransportError


class FakeTransport:
    """
    In-memory RpcTransport.

    Set ``failures`` to make the next N calls raise ``error``, or
    ``fail_forever`` to make every call raise.
    """

    def __init__(
        self,
        url: str,
        block_number: int = 100,
        balance: int = 0,
        call_result: str = "0x" + "0" * 63 + "1",
        delay: float = 0.0,
    ):
        self.url = url
        self.block_number = block_number
        self.balance = balance
        self.call_result = call_result
        self.delay = delay
        self.failures = 0
        self.fail_forever = False
        self.error: Exception | None = None
        self.calls: list[str] = []
        self.closed = False

    def fail(self, times: int | None = None, error: Exception | None = None) -> "FakeTransport":
        if times is None:
            self.fail_forever = True
        else:
            self.failures = times
        self.error = error
        return self

    def recover(self) -> "FakeTransport":
        self.failures = 0
        self.fail_forever = False
        return self

    async def _respond(self, method: str, value: Any) -> Any:
        self.calls.append(method)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_forever or self.failures > 0:
            if self.failures > 0:
                self.failures -= 1
            raise self.error or TransportError(f"{self.url} unavailable", details={"endpoint": self.url})
        return value

    async def get_block_number(self) -> int:
        return await self._respond("get_block_number", self.block_number)

    async def call(self, to: str, data: str, block="latest") -> str:
        return await self._respond("call", self.call_result)

    async def batch_call(self, calls, block="latest") -> list[str]:
        return await self._respond("batch_call", [self.call_result for _ in calls])

    async def get_balance(self, address: str, block="latest") -> int:
        return await self._respond("get_balance", self.balance)

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return await self._respond("get_transaction", {"hash": tx_hash})

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self._respond("get_transaction_receipt", {"transactionHash": tx_hash, "status": "0x1"})

    async def get_logs(self, log_filter: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._respond("get_logs", [{"address": log_filter.get("address"), "logIndex": "0x0"}])

    async def get_block(self, identifier, full_transactions: bool = False) -> dict[str, Any] | None:
        return await self._respond("get_block", {"number": hex(self.block_number), "transactions": []})

    async def aclose(self) -> None:
        self.closed = True


class TransportTestFactory:
    """
    Callable transport factory remembering every transport it built.

    Usage:
        factory = TransportTestFactory()
        client = ResilientRpcClient(["https://a"], transport_factory=factory)
        factory["https://a"].fail(times=2)
    """

    def __init__(self, **defaults):
        self._defaults = defaults
        self.transports: dict[str, FakeTransport] = {}

    def __call__(self, url: str) -> FakeTransport:
        transport = FakeTransport(url, **self._defaults)
        self.transports[url] = transport
        return transport

    def __getitem__(self, url: str) -> FakeTransport:
        return self.transports[url]

    def total_calls(self) -> int:
        return sum(len(transport.calls) for transport in self.transports.values())


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
