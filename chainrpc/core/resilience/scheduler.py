"""
Request Scheduler

FIFO queue of pending reads drained by one background task.

Flow per drain cycle (every ``drain_interval`` seconds):
    1. Queue empty → nothing to do
    2. No healthy endpoint → every queued request fails with
       NoHealthyEndpointsError and the queue is emptied
    3. Otherwise take up to ``burst_limit`` requests from the front; for
       each one select an endpoint, run the call through the retry
       executor and settle the caller's future, sleeping
       ``1 / requests_per_second`` between requests

A single worker processes requests one at a time, so there is never more
than one in-flight call per client.
"""

import asyncio
import time
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from chainrpc.core.config.constants import (
    SCHEDULER_BURST_LIMIT,
    SCHEDULER_DRAIN_INTERVAL,
    SCHEDULER_REQUESTS_PER_SECOND,
    Stage,
)
from chainrpc.core.exceptions import (
    NoHealthyEndpointsError,
    SchedulerClosedError,
    TransportError,
)
from chainrpc.core.interfaces.transport import RpcTransport
from chainrpc.core.logging.logger import (
    clear_request_id,
    get_logger,
    log_stage,
    set_request_id,
)
from chainrpc.core.resilience.endpoint_pool import Endpoint, EndpointPool
from chainrpc.core.resilience.retry import RetryExecutor
from chainrpc.core.resilience.selector import EndpointSelector

logger = get_logger(__name__)

Invoker = Callable[[RpcTransport, Any], Awaitable[Any]]


@dataclass
class QueuedRequest:
    """A pending read waiting for its turn."""

    operation: Any
    future: asyncio.Future
    enqueued_at: float = field(default_factory=time.time)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    def resolve(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def fail(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)


class RequestScheduler:
    """
    Owns the request queue and the drain loop.

    Args:
        pool: Endpoint pool shared with the health monitor
        invoker: Coroutine function performing one operation on one transport
        selector: Round-robin selector (defaults to one over ``pool``)
        retry_executor: Backoff loop applied to each request
        drain_interval: Seconds between drain cycles
        requests_per_second: Pacing between requests within a cycle
        burst_limit: Maximum requests processed per cycle
        sleep: Awaitable sleep used for pacing (injectable for tests)
    """

    def __init__(
        self,
        pool: EndpointPool,
        invoker: Invoker,
        selector: EndpointSelector | None = None,
        retry_executor: RetryExecutor | None = None,
        drain_interval: float = SCHEDULER_DRAIN_INTERVAL,
        requests_per_second: float = SCHEDULER_REQUESTS_PER_SECOND,
        burst_limit: int = SCHEDULER_BURST_LIMIT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.pool = pool
        self.selector = selector if selector is not None else EndpointSelector(pool)
        self._invoker = invoker
        self._retry = retry_executor if retry_executor is not None else RetryExecutor()
        self._drain_interval = drain_interval
        self._item_delay = 1.0 / requests_per_second
        self._burst_limit = burst_limit
        self._sleep = sleep

        self._queue: deque[QueuedRequest] = deque()
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, operation: Any) -> asyncio.Future:
        """
        Append an operation to the tail of the queue.

        Returns:
            Future settled with the operation's result or error

        Raises:
            SchedulerClosedError: If the scheduler has been stopped
        """
        if self._closed:
            raise SchedulerClosedError("RPC client is closed", details={"operation": repr(operation)})

        future = asyncio.get_running_loop().create_future()
        request = QueuedRequest(operation=operation, future=future)
        self._queue.append(request)

        log_stage(
            logger,
            Stage.ENQUEUE,
            "Request queued",
            level="debug",
            queued_request_id=request.request_id,
            queue_length=len(self._queue),
        )
        return future

    def start(self) -> None:
        if self._closed:
            raise SchedulerClosedError("RPC client is closed")
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="chainrpc-scheduler")
            log_stage(
                logger,
                Stage.INITIALIZATION,
                "Request scheduler started",
                drain_interval=self._drain_interval,
                burst_limit=self._burst_limit,
            )

    async def stop(self) -> None:
        """Stop draining and fail everything still waiting."""
        self._closed = True

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        abandoned = self._fail_all(SchedulerClosedError("RPC client closed before the request was served"))

        log_stage(logger, Stage.SHUTDOWN, "Request scheduler stopped", abandoned=abandoned)

    async def _run(self) -> None:
        while True:
            try:
                await self.drain_once()
            except Exception as e:
                logger.exception("Drain cycle failed", stage=Stage.DRAIN.value, error=str(e))
            await asyncio.sleep(self._drain_interval)

    async def drain_once(self) -> int:
        """
        Run a single drain cycle.

        Returns:
            Number of requests served (successfully or not)
        """
        if not self._queue:
            return 0

        if not self.pool.has_healthy():
            failed = self._fail_all(NoHealthyEndpointsError())
            log_stage(
                logger,
                Stage.DRAIN,
                "No healthy endpoints, failing queued requests",
                level="warning",
                failed=failed,
            )
            return 0

        # only requests queued before the cycle started are taken
        budget = min(len(self._queue), self._burst_limit)
        taken = 0
        served = 0

        while self._queue and taken < budget:
            request = self._queue.popleft()
            taken += 1
            if request.future.done():
                # caller gave up while waiting
                continue

            endpoint = self.selector.select()
            if endpoint is None:
                error = NoHealthyEndpointsError()
                request.fail(error)
                failed = self._fail_all(error) + 1
                log_stage(
                    logger,
                    Stage.ENDPOINT_SELECTION,
                    "Endpoints became unhealthy mid-cycle, failing queued requests",
                    level="warning",
                    failed=failed,
                )
                break

            await self._serve(request, endpoint)
            served += 1

            if self._queue and taken < budget:
                await self._sleep(self._item_delay)

        return served

    async def _serve(self, request: QueuedRequest, endpoint: Endpoint) -> None:
        set_request_id(request.request_id)
        try:
            result = await self._retry.execute(
                lambda: self._attempt(endpoint, request.operation),
                label=type(request.operation).__name__,
            )
        except asyncio.CancelledError:
            request.fail(SchedulerClosedError("RPC client closed before the request was served"))
            raise
        except Exception as e:
            request.fail(e)
        else:
            request.resolve(result)
        finally:
            clear_request_id()

    async def _attempt(self, endpoint: Endpoint, operation: Any) -> Any:
        endpoint.record_request()
        log_stage(
            logger,
            Stage.TRANSPORT_CALL,
            "Dispatching request",
            level="debug",
            endpoint=endpoint.url,
            operation=type(operation).__name__,
        )

        try:
            result = await self._invoker(endpoint.transport, operation)
        except TransportError as e:
            if endpoint.record_failure(e):
                log_stage(
                    logger,
                    Stage.HEALTH,
                    "Endpoint marked unhealthy",
                    level="warning",
                    endpoint=endpoint.url,
                    consecutive_errors=endpoint.consecutive_errors,
                    error=str(e),
                )
            raise

        endpoint.record_success()
        return result

    def _fail_all(self, error: BaseException) -> int:
        failed = 0
        while self._queue:
            request = self._queue.popleft()
            if not request.future.done():
                request.fail(error)
                failed += 1
        return failed
