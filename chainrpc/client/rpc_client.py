#!/usr/bin/env python3
"""
Resilient RPC Client

Public entry point for blockchain reads. Wires together:

    ResilientRpcClient (Public API)
        ├── ResponseCache (TTL cache, checked before queuing)
        ├── RequestScheduler (FIFO queue, pacing, retries)
        │   ├── EndpointSelector (round-robin over healthy endpoints)
        │   └── RetryExecutor (exponential backoff)
        ├── HealthMonitor (periodic chain-head probes)
        └── EndpointPool (one JsonRpcTransport per endpoint)

Flow for one read:
    1. Cache lookup (only when the operation has a TTL)
    2. Enqueue and wait for the scheduler to serve it
    3. Store the result in the cache (only when the operation has a TTL)

Errors reach the caller unchanged; stale cache entries are never served
as a fallback.

Usage:
    async with ResilientRpcClient() as client:
        head = await client.get_chain_head()
        balance = await client.get_balance("0x...")
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from chainrpc.client.operations import (
    BatchRead,
    GetBalance,
    GetBlock,
    GetChainHead,
    GetLogs,
    GetTransaction,
    GetTransactionReceipt,
    ReadState,
    dispatch_operation,
    ensure_supported,
)
from chainrpc.core.config.constants import OperationKind, Stage
from chainrpc.core.config.settings import Settings, get_settings
from chainrpc.core.interfaces.transport import BlockTag, RpcTransport
from chainrpc.core.logging.logger import get_logger, log_stage
from chainrpc.core.resilience.endpoint_pool import EndpointPool
from chainrpc.core.resilience.retry import RetryExecutor, RetryPolicy
from chainrpc.core.resilience.scheduler import RequestScheduler
from chainrpc.infrastructure.cache.response_cache import ResponseCache
from chainrpc.infrastructure.monitoring.health_monitor import HealthMonitor, summarize
from chainrpc.infrastructure.transport.jsonrpc_client import JsonRpcTransport

logger = get_logger(__name__)

_MISSING = object()


def default_ttls(settings: Settings) -> dict[OperationKind, float | None]:
    cache = settings.cache
    return {
        OperationKind.CHAIN_HEAD: cache.CACHE_TTL_CHAIN_HEAD,
        OperationKind.READ_STATE: cache.CACHE_TTL_READ_STATE,
        OperationKind.BATCH_READ: cache.CACHE_TTL_BATCH_READ,
        OperationKind.BALANCE: cache.CACHE_TTL_BALANCE,
        OperationKind.TRANSACTION: cache.CACHE_TTL_TRANSACTION,
        OperationKind.TRANSACTION_RECEIPT: cache.CACHE_TTL_TRANSACTION_RECEIPT,
        OperationKind.LOGS: cache.CACHE_TTL_LOGS,
        OperationKind.BLOCK: cache.CACHE_TTL_BLOCK,
    }


class ResilientRpcClient:
    """
    Multi-endpoint JSON-RPC read client with caching, queuing, retries and
    health-based failover.

    Background tasks start on first use (or on ``start()`` / ``async with``)
    and must run inside an event loop.

    Args:
        endpoints: Ordered endpoint URLs (defaults to the configured list)
        settings: Settings instance (defaults to get_settings())
        transport_factory: Builds the transport for one URL
        retry_policy: Backoff parameters (defaults from settings)
        cache: Response cache instance (defaults from settings)
        ttl_overrides: Per-kind default TTLs replacing the configured ones
    """

    def __init__(
        self,
        endpoints: Sequence[str] | None = None,
        settings: Settings | None = None,
        transport_factory: Callable[[str], RpcTransport] | None = None,
        retry_policy: RetryPolicy | None = None,
        cache: ResponseCache | None = None,
        ttl_overrides: Mapping[OperationKind, float | None] | None = None,
    ):
        self.settings = settings or get_settings()
        endpoint_settings = self.settings.endpoints
        urls = list(endpoints) if endpoints is not None else endpoint_settings.resolved_endpoints()

        if transport_factory is None:
            def transport_factory(url: str) -> RpcTransport:
                return JsonRpcTransport(
                    url,
                    timeout=endpoint_settings.RPC_TIMEOUT,
                    max_connections=endpoint_settings.RPC_MAX_CONNECTIONS,
                )

        health = self.settings.health
        scheduler = self.settings.scheduler

        self.pool = EndpointPool(
            urls,
            transport_factory,
            failure_threshold=health.HEALTH_FAILURE_THRESHOLD,
            force_reset_threshold=health.HEALTH_FORCE_RESET_THRESHOLD,
        )
        self.cache = cache if cache is not None else ResponseCache(max_size=self.settings.cache.CACHE_MAX_SIZE)
        self.scheduler = RequestScheduler(
            self.pool,
            dispatch_operation,
            retry_executor=RetryExecutor(retry_policy or RetryPolicy.from_settings(self.settings)),
            drain_interval=scheduler.SCHEDULER_DRAIN_INTERVAL,
            requests_per_second=scheduler.SCHEDULER_REQUESTS_PER_SECOND,
            burst_limit=scheduler.SCHEDULER_BURST_LIMIT,
        )
        self.health_monitor = HealthMonitor(
            self.pool,
            interval=health.HEALTH_CHECK_INTERVAL,
            timeout=health.HEALTH_CHECK_TIMEOUT,
        )

        self._ttls = default_ttls(self.settings)
        if ttl_overrides:
            self._ttls.update(ttl_overrides)

        self._started = False

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "RPC client initialized",
            endpoints=len(self.pool),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the scheduler and health monitor tasks (idempotent)."""
        if self._started:
            return
        self.scheduler.start()
        self.health_monitor.start()
        self._started = True

    async def aclose(self) -> None:
        """
        Stop background tasks, fail pending requests with
        SchedulerClosedError, clear the cache and close transports.
        """
        await self.health_monitor.stop()
        await self.scheduler.stop()
        self.cache.clear()
        await self.pool.aclose()
        self._started = False
        log_stage(logger, Stage.SHUTDOWN, "RPC client closed")

    async def __aenter__(self) -> "ResilientRpcClient":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Core execution
    # -------------------------------------------------------------------------

    def _resolve_ttl(self, kind: OperationKind, ttl: float | None) -> float | None:
        effective = self._ttls.get(kind) if ttl is None else ttl
        if effective is None or effective <= 0:
            return None
        return effective

    async def execute(self, operation: Any, ttl: float | None = None) -> Any:
        """
        Run one read operation.

        Args:
            operation: One of the operation types in chainrpc.client.operations
            ttl: Cache lifetime in seconds; None uses the kind's default,
                0 disables caching for this call

        Raises:
            UnsupportedOperationError: Unknown operation (no endpoint is touched)
            NoHealthyEndpointsError: No endpoint was healthy when the request was served
            TransportError: Last attempt's failure after retries were exhausted
            SchedulerClosedError: Client closed before the request was served
        """
        ensure_supported(operation)

        effective_ttl = self._resolve_ttl(operation.kind, ttl)
        cache_key = None

        if effective_ttl is not None:
            cache_key = self.cache.build_key(operation.kind.value, operation.cache_params())
            cached = self.cache.get(cache_key, _MISSING)
            if cached is not _MISSING:
                log_stage(
                    logger,
                    Stage.CACHE_LOOKUP,
                    "Cache hit",
                    level="debug",
                    operation=operation.kind.value,
                )
                return cached

        self.start()
        result = await self.scheduler.submit(operation)

        if cache_key is not None:
            self.cache.set(cache_key, result, effective_ttl)
        return result

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def get_chain_head(self, ttl: float | None = None) -> int:
        return await self.execute(GetChainHead(), ttl)

    async def read_state(
        self,
        target: str,
        selector: str,
        args: tuple = (),
        block: BlockTag = "latest",
        ttl: float | None = None,
    ) -> str:
        """Contract view call; returns raw hex return data."""
        return await self.execute(ReadState(target, selector, tuple(args), block), ttl)

    async def batch_read(
        self, calls: Sequence[ReadState], block: BlockTag = "latest", ttl: float | None = None
    ) -> list[str]:
        """Several contract view calls in one round trip; results in call order."""
        return await self.execute(BatchRead(tuple(calls), block), ttl)

    async def get_balance(self, address: str, block: BlockTag = "latest", ttl: float | None = None) -> int:
        return await self.execute(GetBalance(address, block), ttl)

    async def get_transaction(self, tx_hash: str, ttl: float | None = None) -> dict[str, Any] | None:
        return await self.execute(GetTransaction(tx_hash), ttl)

    async def get_transaction_receipt(self, tx_hash: str, ttl: float | None = None) -> dict[str, Any] | None:
        return await self.execute(GetTransactionReceipt(tx_hash), ttl)

    async def get_logs(self, log_filter: Mapping[str, Any], ttl: float | None = None) -> list[dict[str, Any]]:
        return await self.execute(GetLogs(dict(log_filter)), ttl)

    async def get_block(
        self, identifier: BlockTag = "latest", full_transactions: bool = False, ttl: float | None = None
    ) -> dict[str, Any] | None:
        return await self.execute(GetBlock(identifier, full_transactions), ttl)

    # -------------------------------------------------------------------------
    # Status and administration
    # -------------------------------------------------------------------------

    def get_health_status(self) -> dict[str, Any]:
        return {
            "status": summarize(self.pool).value,
            "total_endpoints": len(self.pool),
            "healthy_endpoints": len(self.pool.healthy_endpoints()),
            "queue_length": self.scheduler.queue_length,
            "cache_size": len(self.cache),
            "endpoints": self.pool.status(),
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        log_stage(logger, Stage.ADMIN, "Cache cleared")

    async def force_health_check(self) -> dict[str, bool]:
        """Reset endpoints with long error streaks, then probe every endpoint now."""
        return await self.health_monitor.force_health_check()

    def current_transport(self) -> RpcTransport | None:
        """
        Transport of the next healthy endpoint in rotation, for callers that
        need direct access. Advances the round-robin counter.
        """
        endpoint = self.scheduler.selector.select()
        return endpoint.transport if endpoint is not None else None
