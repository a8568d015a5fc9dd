"""Caching and external state providers."""

from planner.state.cache import CachedValue, SingleFlight, TtlCache
from planner.state.providers import PoolStateProvider

__all__ = ["CachedValue", "SingleFlight", "TtlCache", "PoolStateProvider"]
