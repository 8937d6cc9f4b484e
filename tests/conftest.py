"""Shared fixtures for allserver tests."""

from __future__ import annotations

import pytest

from allserver import (
    DEFAULT_CONFIG,
    ClientConfig,
    IntrospectionCache,
    TransportRegistry,
    introspection_cache,
    transports,
)
from tests.helpers import VoidTransport


@pytest.fixture(autouse=True)
def _clean_introspection_cache():
    """Keep the process-wide cache from leaking between tests."""
    introspection_cache.clear()
    yield
    introspection_cache.clear()


@pytest.fixture
def cache() -> IntrospectionCache:
    """A private introspection cache."""
    return IntrospectionCache()


@pytest.fixture
def registry() -> TransportRegistry:
    """The default registry plus the ``void`` schema."""
    registry = transports.copy()
    registry.register("void", VoidTransport)
    return registry


@pytest.fixture
def config(registry: TransportRegistry, cache: IntrospectionCache) -> ClientConfig:
    """Client config isolated from process-wide state."""
    return DEFAULT_CONFIG.defaults(registry=registry, introspection_cache=cache)


@pytest.fixture
def transport() -> VoidTransport:
    """A fresh void transport."""
    return VoidTransport()
