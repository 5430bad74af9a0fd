"""Shared fixtures for hookloader tests."""

import pytest

from hookloader.context import reset_context


@pytest.fixture(autouse=True)
def isolated_context():
    """Every test starts without a process context and leaves none behind."""
    previous = reset_context(None)
    yield
    reset_context(previous)
