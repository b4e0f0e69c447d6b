"""
Pytest configuration for ColdGuard tests.

Registers custom markers and provides shared fixtures.
"""

from unittest.mock import Mock

import pytest

from core.coldguard.llm_client import LLMClient
from core.coldguard.sensor_buffer import SensorBuffer
from core.coldguard.signal_controller import SignalController
from core.coldguard.state_store import MemoryStateStore


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "api: HTTP endpoint tests (deselect with '-m \"not api\"')"
    )


@pytest.fixture
def memory_store():
    """Fixture providing an empty in-memory state store."""
    return MemoryStateStore()


@pytest.fixture
def controller(memory_store):
    """Fixture providing a SignalController over an in-memory store."""
    return SignalController(memory_store)


@pytest.fixture
def buffer():
    """Fixture providing an empty sensor buffer."""
    return SensorBuffer(max_records=50)


@pytest.fixture
def llm():
    """Fixture providing a mocked LLM client."""
    return Mock(spec=LLMClient)
