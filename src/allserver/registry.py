"""Registry mapping uri schemas to transport factories."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

from allserver.error import ConfigurationError
from allserver.transports import HttpClientTransport
from allserver.types import ClientTransport

TransportFactory = Callable[..., ClientTransport]


class TransportRegistry:
    """Resolves a uri to a transport by its schema.

    Example:
        >>> registry = transports.copy()
        >>> registry.register("void", VoidTransport)
        >>> transport = registry.create("void://localhost")
    """

    def __init__(self, factories: Mapping[str, TransportFactory] | None = None) -> None:
        self._factories: dict[str, TransportFactory] = {}
        for schema, factory in (factories or {}).items():
            self.register(schema, factory)

    def __contains__(self, schema: object) -> bool:
        return isinstance(schema, str) and schema.lower() in self._factories

    @property
    def schemas(self) -> list[str]:
        """Registered schemas, sorted."""
        return sorted(self._factories)

    def register(self, schema: str, factory: TransportFactory) -> None:
        """Register a transport factory for ``schema`` (e.g. "grpc")."""
        self._factories[schema.lower()] = factory

    def unregister(self, schema: str) -> None:
        """Remove a schema. Unknown schemas are ignored."""
        self._factories.pop(schema.lower(), None)

    def copy(self) -> TransportRegistry:
        """Return an independent registry with the same schemas."""
        return TransportRegistry(self._factories)

    def create(self, uri: str, **options: Any) -> ClientTransport:
        """Build the transport for ``uri``.

        Args:
            uri: Destination address
            **options: Passed to the transport factory

        Raises:
            ConfigurationError: If ``uri`` is missing or its schema is unknown
        """
        if not isinstance(uri, str) or not uri:
            msg = "`uri` connection string is required"
            raise ConfigurationError(msg)

        schema = urlsplit(uri).scheme.lower()
        factory = self._factories.get(schema)
        if factory is None:
            msg = f"Schema not supported: {uri}"
            raise ConfigurationError(msg)
        return factory(uri, **options)


transports = TransportRegistry(
    {"http": HttpClientTransport, "https": HttpClientTransport}
)
