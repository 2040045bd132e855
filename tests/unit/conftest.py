"""Unit test fixtures (mocks and stubs).

Provides mock policies and sinks so units can be tested in isolation, and a
patched wait so the engine never sleeps.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest


@pytest.fixture
def mock_next():
    """Mock downstream policy returning a fixed 100ms delay."""
    return Mock(return_value=100)


@pytest.fixture
def mock_warn():
    """Mock warn sink (structlog-style: event plus keyword fields)."""
    return Mock()


@pytest.fixture
def mock_error():
    """Mock error sink (structlog-style: event plus keyword fields)."""
    return Mock()


@pytest.fixture
def instant_wait():
    """Replace the engine's wait with an AsyncMock recording requested delays."""
    with patch("retrychain.core.wait", new=AsyncMock(return_value=None)) as mock_wait:
        yield mock_wait


@pytest.fixture
def fixed_random():
    """Pin random.random() to 0.5 for deterministic jitter."""
    with patch("retrychain.policies.jitter.random.random", return_value=0.5) as mock_random:
        yield mock_random
