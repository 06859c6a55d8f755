"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .transport_factory import FakeClock, FakeTransport, RecordingSleep, TransportTestFactory

__all__ = ["FakeClock", "FakeTransport", "RecordingSleep", "TransportTestFactory"]
