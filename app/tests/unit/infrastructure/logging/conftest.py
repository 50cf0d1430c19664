"""Fixtures for infrastructure.logging tests."""

import pytest

from infrastructure.logging import configure_logging


@pytest.fixture
def restore_test_logging():
    """Reconfigure logging back to the silent test setup afterwards."""
    yield
    configure_logging()
