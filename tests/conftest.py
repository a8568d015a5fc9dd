"""Pytest configuration and fixtures."""

import pytest

from planner.pool.types import PoolState
from tests.helpers import make_pool


@pytest.fixture
def pool() -> PoolState:
    """Three equally weighted assets, 1000 tokens each, 100 pool tokens."""
    return make_pool()
