"""
Pytest configuration and fixtures for pyirb tests.
"""

import io
import sys
from pathlib import Path

import pytest

# Add project root to path so we can import the pyirb package
sys.path.insert(0, str(Path(__file__).parent.parent))

from pyirb.config import IRBConfig
from pyirb.context import Context
from pyirb.driver import Driver


@pytest.fixture
def output_stream():
    """Provide an in-memory output stream."""
    return io.StringIO()


@pytest.fixture
def driver(output_stream):
    """Provide a driver writing to an in-memory stream."""
    return Driver(input=io.StringIO(""), output=output_stream)


@pytest.fixture
def context(driver):
    """Provide a context whose output is captured."""
    return Context(driver=driver)


@pytest.fixture
def mock_config():
    """Provide a basic config."""
    return IRBConfig()


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "hypothesis: property-based tests"
    )
    config.addinivalue_line(
        "markers", "security: security-related tests"
    )
