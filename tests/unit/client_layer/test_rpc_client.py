"""
Unit Tests for the Resilient RPC Client

End-to-end behavior through the public API with in-memory transports:
caching, round-robin, failover, fail-fast, retries and administration.
"""

import asyncio
import time

import pytest

from chainrpc.client.operations import GetChainHead, ReadState
from chainrpc.client.rpc_client import ResilientRpcClient
from chainrpc.core.config.constants import OperationKind
from chainrpc.core.exceptions import (
    NoHealthyEndpointsError,
    SchedulerClosedError,
    TransportError,
    UnsupportedOperationError,
)
from chainrpc.core.resilience.retry import RetryPolicy
from chainrpc.infrastructure.cache.response_cache import ResponseCache
from chainrpc.infrastructure.transport.jsonrpc_client import JsonRpcTransport
from tests.test_fixtures import TransportTestFactory

A, B, C = "https://rpc-a.example", "https://rpc-b.example", "https://rpc-c.example"
ADDR_1 = "0x" + "01" * 20
ADDR_2 = "0x" + "02" * 20
TOKEN = "0x" + "aa" * 20


@pytest.fixture
def make_client(fast_settings, transport_factory):
    def factory(**kwargs):
        kwargs.setdefault("settings", fast_settings)
        kwargs.setdefault("transport_factory", transport_factory)
        return ResilientRpcClient(**kwargs)

    return factory


def request_counts(client):
    return {endpoint.url: endpoint.request_count for endpoint in client.pool}


@pytest.mark.unit
class TestCaching:
    @pytest.mark.asyncio
    async def test_cache_hit_avoids_network(self, make_client, transport_factory):
        async with make_client() as client:
            first = await client.get_balance(ADDR_1)
            counts = request_counts(client)
            second = await client.get_balance(ADDR_1)

            assert first == second
            assert request_counts(client) == counts
            assert transport_factory.total_calls() == 1

    def test_injected_empty_cache_is_used(self, make_client, fake_clock):
        cache = ResponseCache(clock=fake_clock)
        client = make_client(cache=cache)

        assert len(cache) == 0
        assert client.cache is cache

    @pytest.mark.asyncio
    async def test_cache_expiry_triggers_fresh_dispatch(self, make_client, transport_factory, fake_clock):
        cache = ResponseCache(clock=fake_clock)
        async with make_client(cache=cache) as client:
            await client.get_chain_head()
            fake_clock.advance(5.01)
            transport_factory[A].block_number = 101
            transport_factory[B].block_number = 101

            assert await client.get_chain_head() == 101
            assert transport_factory.total_calls() == 2

            # refreshed entry is served again
            assert await client.get_chain_head() == 101
            assert transport_factory.total_calls() == 2

    @pytest.mark.asyncio
    async def test_operations_without_ttl_are_not_cached(self, make_client, transport_factory):
        tx_hash = "0x" + "cd" * 32
        async with make_client() as client:
            await client.get_transaction(tx_hash)
            await client.get_transaction(tx_hash)

            assert transport_factory.total_calls() == 2
            assert client.get_health_status()["cache_size"] == 0

    @pytest.mark.asyncio
    async def test_call_site_ttl_overrides_default(self, make_client, transport_factory):
        tx_hash = "0x" + "cd" * 32
        async with make_client() as client:
            await client.get_transaction_receipt(tx_hash, ttl=60)
            await client.get_transaction_receipt(tx_hash, ttl=60)

            assert transport_factory.total_calls() == 1

    @pytest.mark.asyncio
    async def test_zero_ttl_bypasses_cache(self, make_client, transport_factory):
        async with make_client() as client:
            await client.get_chain_head(ttl=0)
            await client.get_chain_head(ttl=0)

            assert transport_factory.total_calls() == 2

    @pytest.mark.asyncio
    async def test_ttl_overrides_mapping(self, make_client, transport_factory):
        async with make_client(ttl_overrides={OperationKind.LOGS: 30}) as client:
            await client.get_logs({"address": TOKEN, "fromBlock": 1})
            await client.get_logs({"fromBlock": 1, "address": TOKEN})

            assert transport_factory.total_calls() == 1

    @pytest.mark.asyncio
    async def test_errors_are_not_cached_and_no_stale_fallback(
        self, make_client, transport_factory, fake_clock
    ):
        cache = ResponseCache(clock=fake_clock)
        async with make_client(cache=cache, retry_policy=RetryPolicy(max_retries=0, base_delay=0)) as client:
            await client.get_balance(ADDR_1)
            fake_clock.advance(16)
            transport_factory[A].fail(times=1)
            transport_factory[B].fail(times=1)

            with pytest.raises(TransportError):
                await client.get_balance(ADDR_1)

    @pytest.mark.asyncio
    async def test_clear_cache(self, make_client, transport_factory):
        async with make_client() as client:
            await client.get_chain_head()
            client.clear_cache()
            await client.get_chain_head()

            assert transport_factory.total_calls() == 2


@pytest.mark.unit
class TestRoutingAndFailover:
    @pytest.mark.asyncio
    async def test_round_robin_fairness(self, make_client, fast_settings):
        settings = fast_settings.model_copy(update={"RPC_ENDPOINTS": [A, B, C]})
        async with make_client(settings=settings) as client:
            for _ in range(3):
                await client.get_chain_head(ttl=0)

            assert request_counts(client) == {A: 1, B: 1, C: 1}

    @pytest.mark.asyncio
    async def test_failure_isolation(self, make_client, fast_settings):
        settings = fast_settings.model_copy(update={"RPC_ENDPOINTS": [A, B, C]})
        async with make_client(settings=settings) as client:
            b = client.pool.get(B)
            b.healthy = False

            for _ in range(4):
                await client.get_chain_head(ttl=0)

            assert b.request_count == 0
            assert b.consecutive_errors == 0
            assert request_counts(client) == {A: 2, B: 0, C: 2}

    @pytest.mark.asyncio
    async def test_all_unhealthy_fails_fast(self, make_client):
        async with make_client() as client:
            for endpoint in client.pool:
                endpoint.healthy = False

            results = await asyncio.wait_for(
                asyncio.gather(
                    client.get_chain_head(),
                    client.get_balance(ADDR_1),
                    client.get_balance(ADDR_2),
                    return_exceptions=True,
                ),
                timeout=1.0,
            )

            assert all(isinstance(result, NoHealthyEndpointsError) for result in results)
            assert client.get_health_status()["queue_length"] == 0

    @pytest.mark.asyncio
    async def test_retry_then_success_respects_backoff(self, make_client, transport_factory):
        policy = RetryPolicy(max_retries=3, base_delay=0.05, backoff_multiplier=2.0)
        async with make_client(endpoints=[A], retry_policy=policy) as client:
            transport_factory[A].fail(times=2)

            started = time.monotonic()
            result = await client.get_chain_head()
            elapsed = time.monotonic() - started

            assert result == 100
            # 0.05 + 0.05 * 2
            assert elapsed >= 0.14
            assert client.pool.get(A).consecutive_errors == 0

    @pytest.mark.asyncio
    async def test_threshold_marks_unhealthy_without_probe(self, make_client, transport_factory):
        async with make_client() as client:
            transport_factory[A].fail()

            with pytest.raises(TransportError):
                await client.get_chain_head()

            a = client.pool.get(A)
            assert a.healthy is False
            assert a.consecutive_errors >= 3
            assert client.health_monitor.last_check is None

    @pytest.mark.asyncio
    async def test_balance_failover_walkthrough(self, make_client, transport_factory, fake_clock):
        cache = ResponseCache(clock=fake_clock)
        async with make_client(cache=cache) as client:
            await client.get_balance(ADDR_1)
            assert transport_factory[A].calls == ["get_balance"]

            fake_clock.advance(5)
            await client.get_balance(ADDR_1)
            assert transport_factory.total_calls() == 1

            a = client.pool.get(A)
            for _ in range(3):
                a.record_failure(TransportError("simulated"))
            assert a.healthy is False

            await client.get_balance(ADDR_2)

            assert transport_factory[A].calls == ["get_balance"]
            assert transport_factory[B].calls == ["get_balance"]

    @pytest.mark.asyncio
    async def test_concurrent_calls_all_served(self, make_client):
        async with make_client() as client:
            results = await asyncio.gather(*(client.get_chain_head(ttl=0) for _ in range(30)))

            assert results == [100] * 30
            assert sum(request_counts(client).values()) == 30


@pytest.mark.unit
class TestOperationsThroughClient:
    @pytest.mark.asyncio
    async def test_read_state_and_batch_read(self, make_client, transport_factory):
        async with make_client() as client:
            single = await client.read_state(TOKEN, "0x70a08231", (ADDR_1,))
            batch = await client.batch_read(
                [ReadState(TOKEN, "0x70a08231", (ADDR_1,)), ReadState.raw(TOKEN, "0x18160ddd")]
            )

            assert single == transport_factory[A].call_result
            assert len(batch) == 2

    @pytest.mark.asyncio
    async def test_get_block(self, make_client):
        async with make_client() as client:
            block = await client.get_block(100)
            assert block["number"] == hex(100)

    @pytest.mark.asyncio
    async def test_execute_generic_operation(self, make_client):
        async with make_client() as client:
            assert await client.execute(GetChainHead()) == 100

    @pytest.mark.asyncio
    @pytest.mark.parametrize("block", [-1, True, "newest"])
    async def test_invalid_block_rejected_before_queueing(self, make_client, transport_factory, block):
        async with make_client() as client:
            for _ in range(2):
                with pytest.raises((ValueError, TypeError)):
                    await client.get_block(block)

            assert transport_factory.total_calls() == 0
            assert all(endpoint.consecutive_errors == 0 for endpoint in client.pool)
            assert await client.get_chain_head() == 100

    @pytest.mark.asyncio
    async def test_unsupported_operation_rejected(self, make_client, transport_factory):
        async with make_client() as client:
            with pytest.raises(UnsupportedOperationError):
                await client.execute("eth_sendRawTransaction")

            assert transport_factory.total_calls() == 0
            assert all(endpoint.consecutive_errors == 0 for endpoint in client.pool)


@pytest.mark.unit
class TestAdministration:
    @pytest.mark.asyncio
    async def test_health_status_report(self, make_client):
        async with make_client() as client:
            await client.get_chain_head()
            client.pool.get(B).healthy = False

            status = client.get_health_status()

            assert status["status"] == "degraded"
            assert status["total_endpoints"] == 2
            assert status["healthy_endpoints"] == 1
            assert status["queue_length"] == 0
            assert status["cache_size"] == 1
            assert [entry["url"] for entry in status["endpoints"]] == [A, B]
            assert set(status["endpoints"][0]) == {
                "url",
                "healthy",
                "request_count",
                "consecutive_errors",
                "last_error",
                "last_error_time",
            }

    @pytest.mark.asyncio
    async def test_force_health_check_recovers(self, make_client):
        async with make_client() as client:
            for endpoint in client.pool:
                for _ in range(6):
                    endpoint.record_failure(TransportError("outage"))

            await client.force_health_check()

            assert client.get_health_status()["healthy_endpoints"] == 2
            assert await client.get_chain_head() == 100

    @pytest.mark.asyncio
    async def test_current_transport_rotates(self, make_client, transport_factory):
        async with make_client() as client:
            assert client.current_transport() is transport_factory[A]
            assert client.current_transport() is transport_factory[B]

            for endpoint in client.pool:
                endpoint.healthy = False
            assert client.current_transport() is None


@pytest.mark.unit
class TestLifecycle:
    @pytest.mark.asyncio
    async def test_lazy_start_on_first_call(self, make_client):
        client = make_client()
        assert client.scheduler.running is False

        await client.get_chain_head()
        assert client.scheduler.running is True
        assert client.health_monitor.running is True

        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_fails_pending_and_releases_resources(self, make_client):
        transport_factory = TransportTestFactory(delay=1.0)
        client = make_client(transport_factory=transport_factory)
        pending = asyncio.ensure_future(client.get_chain_head())
        await asyncio.sleep(0)

        await client.aclose()

        with pytest.raises(SchedulerClosedError):
            await pending
        assert all(transport.closed for transport in transport_factory.transports.values())
        assert len(client.cache) == 0

    @pytest.mark.asyncio
    async def test_calls_after_close_rejected(self, make_client):
        client = make_client()
        await client.aclose()

        with pytest.raises(SchedulerClosedError):
            await client.get_chain_head()

    def test_default_transport_factory(self, fast_settings):
        client = ResilientRpcClient(settings=fast_settings.model_copy(update={"RPC_TIMEOUT": 3.0}))

        transports = [endpoint.transport for endpoint in client.pool]
        assert all(isinstance(t, JsonRpcTransport) for t in transports)
        assert transports[0].config.timeout == 3.0
