"""
Endpoint Pool

Holds one Endpoint record per configured RPC address together with its
health flag and usage counters.

State machine per endpoint:

    Healthy ──(3 consecutive request failures | failed probe)──▶ Unhealthy
    Unhealthy ──(successful probe | forced reset when errors > 5)──▶ Healthy

There is no terminal state: an endpoint can cycle indefinitely.
"""

import asyncio
import time
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from chainrpc.core.config.constants import (
    ENDPOINT_FAILURE_THRESHOLD,
    ENDPOINT_FORCE_RESET_THRESHOLD,
)
from chainrpc.core.exceptions import ConfigurationError
from chainrpc.core.interfaces.transport import RpcTransport
from chainrpc.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass(eq=False)
class Endpoint:
    """
    One configured RPC endpoint.

    ``url`` and ``transport`` are fixed at construction; the remaining
    fields are health and usage counters updated by the scheduler (request
    outcomes) and the health monitor (probe outcomes).
    """

    url: str
    transport: RpcTransport
    healthy: bool = True
    consecutive_errors: int = 0
    request_count: int = 0
    last_request_time: float = 0.0
    last_error: BaseException | None = None
    last_error_time: float | None = None
    failure_threshold: int = field(default=ENDPOINT_FAILURE_THRESHOLD, repr=False)

    def record_request(self, now: float | None = None) -> None:
        self.request_count += 1
        self.last_request_time = time.time() if now is None else now

    def record_success(self) -> None:
        self.consecutive_errors = 0

    def record_failure(self, error: BaseException, now: float | None = None) -> bool:
        """
        Count a failed request.

        Returns:
            True if this failure flipped the endpoint to unhealthy
        """
        self.consecutive_errors += 1
        self.last_error = error
        self.last_error_time = time.time() if now is None else now

        if self.healthy and self.consecutive_errors >= self.failure_threshold:
            self.healthy = False
            return True
        return False

    def mark_probe_success(self) -> None:
        self.healthy = True
        self.consecutive_errors = 0
        self.last_error = None
        self.last_error_time = None

    def mark_probe_failure(self, error: BaseException, now: float | None = None) -> None:
        self.healthy = False
        self.consecutive_errors += 1
        self.last_error = error
        self.last_error_time = time.time() if now is None else now

    def reset(self) -> None:
        """Optimistically restore the endpoint (administrative reset)."""
        self.healthy = True
        self.consecutive_errors = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "healthy": self.healthy,
            "request_count": self.request_count,
            "consecutive_errors": self.consecutive_errors,
            "last_error": str(self.last_error) if self.last_error is not None else None,
            "last_error_time": self.last_error_time,
        }


class EndpointPool:
    """
    Ordered, fixed set of endpoints.

    The pool is built once from the configured address list; no endpoints
    are added or removed at runtime.

    Usage:
        pool = EndpointPool(urls, transport_factory=JsonRpcTransport)
        healthy = pool.healthy_endpoints()
    """

    def __init__(
        self,
        urls: Sequence[str],
        transport_factory: Callable[[str], RpcTransport],
        failure_threshold: int = ENDPOINT_FAILURE_THRESHOLD,
        force_reset_threshold: int = ENDPOINT_FORCE_RESET_THRESHOLD,
    ):
        if not urls:
            raise ConfigurationError(
                "At least one RPC endpoint must be configured",
                details={"setting": "RPC_ENDPOINTS"},
            )

        self._force_reset_threshold = force_reset_threshold
        self._endpoints: tuple[Endpoint, ...] = tuple(
            Endpoint(url=url, transport=transport_factory(url), failure_threshold=failure_threshold)
            for url in urls
        )

        logger.info(
            "Endpoint pool initialized",
            endpoints=[endpoint.url for endpoint in self._endpoints],
            failure_threshold=failure_threshold,
        )

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return self._endpoints

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def get(self, url: str) -> Endpoint | None:
        for endpoint in self._endpoints:
            if endpoint.url == url:
                return endpoint
        return None

    def healthy_endpoints(self) -> list[Endpoint]:
        """Healthy endpoints in configuration order."""
        return [endpoint for endpoint in self._endpoints if endpoint.healthy]

    def has_healthy(self) -> bool:
        return any(endpoint.healthy for endpoint in self._endpoints)

    def reset_exhausted(self) -> list[Endpoint]:
        """
        Reset endpoints whose error count exceeds the force-reset threshold.

        Used by force_health_check() so a transient outage cannot blacklist
        an endpoint forever once none remain healthy.

        Returns:
            The endpoints that were reset
        """
        reset = []
        for endpoint in self._endpoints:
            if endpoint.consecutive_errors > self._force_reset_threshold:
                endpoint.reset()
                reset.append(endpoint)
        return reset

    def status(self) -> list[dict[str, Any]]:
        return [endpoint.to_dict() for endpoint in self._endpoints]

    async def aclose(self) -> None:
        """Close every transport; one failing close does not stop the others."""
        results = await asyncio.gather(
            *(endpoint.transport.aclose() for endpoint in self._endpoints),
            return_exceptions=True,
        )
        for endpoint, result in zip(self._endpoints, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Failed to close transport",
                    endpoint=endpoint.url,
                    error=str(result),
                    error_type=type(result).__name__,
                )
