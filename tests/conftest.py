"""
Pytest configuration and fixtures.

Keep this SIMPLE and READABLE.
"""

import pytest

from ndtorch.config import get_config
from ndtorch.engine import create_engine
from ndtorch.ndarray import Device, NDManager


@pytest.fixture
def engine():
    """Fresh engine so statistics start from zero."""
    return create_engine('pytorch')


@pytest.fixture
def manager(engine):
    """
    CPU manager for one test.

    Everything the test allocates is released when the test ends.
    """
    manager = NDManager.new_base_manager(device=Device.cpu(), engine=engine)
    yield manager
    manager.close()


@pytest.fixture
def config():
    """Global config, reset to defaults after the test."""
    config = get_config()
    config.clear()
    yield config
    config.clear()
