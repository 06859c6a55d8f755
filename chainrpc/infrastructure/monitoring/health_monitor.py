#!/usr/bin/env python3
"""
Endpoint Health Monitor

Periodically probes every endpoint with a chain-head query and updates its
health flag:

- probe returns a positive block number within the timeout → healthy,
  error counter and last error cleared
- probe fails, times out or returns an implausible value → unhealthy,
  error counter incremented

Probes run concurrently and one probe's failure never affects another.
The first periodic run happens one interval after start.
"""

import asyncio
import time
from enum import Enum

from chainrpc.core.config.constants import HEALTH_CHECK_INTERVAL, HEALTH_CHECK_TIMEOUT, Stage
from chainrpc.core.exceptions import TransportError, TransportTimeoutError
from chainrpc.core.logging.logger import get_logger, log_stage
from chainrpc.core.resilience.endpoint_pool import Endpoint, EndpointPool

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Aggregate pool health."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def summarize(pool: EndpointPool) -> HealthStatus:
    healthy = len(pool.healthy_endpoints())
    if healthy == len(pool):
        return HealthStatus.HEALTHY
    if healthy == 0:
        return HealthStatus.UNHEALTHY
    return HealthStatus.DEGRADED


class HealthMonitor:
    """
    Background prober for an endpoint pool.

    Usage:
        monitor = HealthMonitor(pool, interval=300, timeout=15)
        monitor.start()
        ...
        await monitor.force_health_check()
        await monitor.stop()
    """

    def __init__(
        self,
        pool: EndpointPool,
        interval: float = HEALTH_CHECK_INTERVAL,
        timeout: float = HEALTH_CHECK_TIMEOUT,
    ):
        self._pool = pool
        self._interval = interval
        self._timeout = timeout
        self._task: asyncio.Task | None = None
        self._last_check: float | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_check(self) -> float | None:
        """Wall-clock time of the most recent completed sweep."""
        return self._last_check

    async def probe(self, endpoint: Endpoint) -> bool:
        """
        Probe one endpoint and update its record.

        Returns:
            True if the endpoint is healthy after the probe
        """
        try:
            block_number = await asyncio.wait_for(
                endpoint.transport.get_block_number(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            endpoint.mark_probe_failure(
                TransportTimeoutError(
                    f"Health check timed out after {self._timeout}s",
                    details={"endpoint": endpoint.url},
                )
            )
            log_stage(
                logger,
                Stage.HEALTH,
                "Health check timed out",
                level="debug",
                endpoint=endpoint.url,
                timeout=self._timeout,
            )
            return False
        except Exception as e:
            endpoint.mark_probe_failure(e)
            log_stage(
                logger,
                Stage.HEALTH,
                "Health check failed",
                level="warning",
                endpoint=endpoint.url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not isinstance(block_number, int) or block_number <= 0:
            endpoint.mark_probe_failure(
                TransportError(
                    "Health check returned an implausible block number",
                    details={"endpoint": endpoint.url, "block_number": block_number},
                )
            )
            log_stage(
                logger,
                Stage.HEALTH,
                "Health check returned implausible block number",
                level="warning",
                endpoint=endpoint.url,
                block_number=block_number,
            )
            return False

        endpoint.mark_probe_success()
        return True

    async def check_all(self) -> dict[str, bool]:
        """
        Probe every endpoint concurrently.

        Returns:
            Mapping of endpoint URL to post-probe health
        """
        endpoints = list(self._pool)
        results = await asyncio.gather(
            *(self.probe(endpoint) for endpoint in endpoints), return_exceptions=True
        )

        outcome: dict[str, bool] = {}
        for endpoint, result in zip(endpoints, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Health probe crashed",
                    stage=Stage.HEALTH.value,
                    endpoint=endpoint.url,
                    error=str(result),
                )
                outcome[endpoint.url] = endpoint.healthy
            else:
                outcome[endpoint.url] = result

        self._last_check = time.time()
        log_stage(
            logger,
            Stage.HEALTH,
            "Health check completed",
            healthy=sum(outcome.values()),
            total=len(outcome),
            status=summarize(self._pool).value,
        )
        return outcome

    async def force_health_check(self) -> dict[str, bool]:
        """
        Reset endpoints stuck in a long error streak, then probe all.
        """
        reset = self._pool.reset_exhausted()
        if reset:
            log_stage(
                logger,
                Stage.ADMIN,
                "Force-reset exhausted endpoints",
                endpoints=[endpoint.url for endpoint in reset],
            )
        return await self.check_all()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="chainrpc-health-monitor")
            log_stage(
                logger,
                Stage.INITIALIZATION,
                "Health monitor started",
                interval=self._interval,
                timeout=self._timeout,
            )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log_stage(logger, Stage.SHUTDOWN, "Health monitor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.check_all()
            except Exception as e:
                logger.exception("Health check sweep failed", stage=Stage.HEALTH.value, error=str(e))
