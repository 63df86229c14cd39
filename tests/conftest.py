"""
pytest configuration for the RabbitMQ source tests.

Adds src directory to Python path for imports and resets shared state.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def _reset_logging_context():
    """Clear log and delivery context between tests."""
    from core.logging import clear_delivery_context, clear_log_context

    yield
    clear_log_context()
    clear_delivery_context()
