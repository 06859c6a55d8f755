"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from chainrpc.core.config.settings import Settings  # noqa: E402
from tests.test_fixtures import FakeClock, RecordingSleep, TransportTestFactory  # noqa: E402

ENDPOINT_A = "https://rpc-a.example"
ENDPOINT_B = "https://rpc-b.example"
ENDPOINT_C = "https://rpc-c.example"


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def endpoint_urls():
    return [ENDPOINT_A, ENDPOINT_B]


@pytest.fixture
def fast_settings(endpoint_urls):
    """
    Settings tuned for tests: fast drain cycles, no pacing delay, no
    retry backoff and a health interval long enough never to fire.
    """
    return Settings(
        RPC_ENDPOINTS=endpoint_urls,
        SCHEDULER_DRAIN_INTERVAL=0.01,
        SCHEDULER_REQUESTS_PER_SECOND=10_000,
        RETRY_BASE_DELAY=0.0,
        RETRY_MAX_DELAY=0.0,
        HEALTH_CHECK_INTERVAL=3600,
        HEALTH_CHECK_TIMEOUT=0.5,
    )


# ============================================================================
# Transport / Clock Fixtures
# ============================================================================


@pytest.fixture
def transport_factory():
    return TransportTestFactory()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
