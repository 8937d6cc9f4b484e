"""Client implementation for allserver.

The client exposes remote procedures as awaitable attributes::

    async with Client("http://localhost:8080/rpc") as client:
        result = await client.getRates({"currency": "EUR"})
        if not result["success"]:
            print(result["code"], result["message"])
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Self

from allserver.error import ConfigurationError, IntrospectionFailure, normalize
from allserver.introspection import IntrospectionCache, introspection_cache
from allserver.pipeline import CallPipeline
from allserver.registry import TransportRegistry, transports
from allserver.resolver import BoundProcedure, NameMapper, ProcedureResolver, identity
from allserver.types import ClientTransport, Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for the allserver client.

    Instances are immutable. Use :meth:`defaults` to derive a preset and
    :meth:`create` to build a client bound to it.
    """

    # Return failure results instead of raising
    never_throw: bool = True
    # Resolve unknown attribute names as remote procedures
    dynamic_methods: bool = True
    # Introspect the server before binding unknown names
    auto_introspect: bool = True
    # Remote name -> local name; a falsy value hides the procedure
    name_mapper: NameMapper = identity
    registry: TransportRegistry = transports
    introspection_cache: IntrospectionCache = introspection_cache
    # Keyword arguments for transports built from a uri
    transport_options: Mapping[str, Any] = field(default_factory=dict)

    def defaults(self, **overrides: Any) -> ClientConfig:
        """Return a copy of this config with ``overrides`` applied."""
        return replace(self, **overrides)

    def create(
        self,
        uri: str | None = None,
        *,
        transport: ClientTransport | None = None,
        client_class: type[Client] | None = None,
    ) -> Client:
        """Build a client that uses this config.

        Args:
            uri: Destination address, resolved through ``registry``
            transport: Pre-built transport, instead of ``uri``
            client_class: ``Client`` subclass to instantiate
        """
        cls = client_class or Client
        return cls(uri, transport=transport, config=self)


DEFAULT_CONFIG = ClientConfig()


class Client:
    """allserver client.

    Any public attribute that is not defined on the class resolves to a
    remote procedure: ``await client.getRates(arg)``. Methods defined on a
    subclass take precedence and are never replaced by remote procedures.

    With ``never_throw`` enabled (the default) every call returns a result
    dict; failures carry ``success=False``, a ``code`` and a ``message``.
    """

    def __init__(
        self,
        uri: str | None = None,
        *,
        transport: ClientTransport | None = None,
        config: ClientConfig = DEFAULT_CONFIG,
        **overrides: Any,
    ) -> None:
        """Initialize the client.

        Args:
            uri: Destination address (e.g., "http://localhost:8080/rpc")
            transport: Pre-built transport, instead of ``uri``
            config: Base configuration
            **overrides: ``ClientConfig`` fields to override for this client

        Raises:
            ConfigurationError: If neither or both of ``uri`` and
                ``transport`` are given, or the uri schema is not registered
        """
        if overrides:
            config = config.defaults(**overrides)

        if transport is None:
            if uri is None:
                msg = "`uri` connection string or `transport` is required"
                raise ConfigurationError(msg)
            transport = config.registry.create(uri, **config.transport_options)
        elif uri is not None:
            msg = "Pass either `uri` or `transport`, not both"
            raise ConfigurationError(msg)

        self.config = config
        self.transport = transport
        self._pipeline = CallPipeline(transport, never_throw=config.never_throw)
        self._resolver = ProcedureResolver(
            self._pipeline,
            config.introspection_cache,
            auto_introspect=config.auto_introspect,
            name_mapper=config.name_mapper,
            is_reserved=self._is_reserved,
        )

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or "_resolver" not in self.__dict__:
            msg = f"'{type(self).__name__}' object has no attribute '{name}'"
            raise AttributeError(msg)

        procedure = self._resolver.lookup(name)
        if procedure is not None:
            return procedure

        if not self.config.dynamic_methods:
            msg = f"'{type(self).__name__}' object has no procedure '{name}'"
            raise AttributeError(msg)

        return functools.partial(self._resolver.resolve_and_call, name)

    def _is_reserved(self, name: str) -> bool:
        return hasattr(type(self), name) or name in self.__dict__

    @property
    def procedures(self) -> Mapping[str, BoundProcedure]:
        """Procedures bound on this client so far."""
        return self._resolver.bound

    async def call(self, procedure_name: str, arg: Any = None) -> Any:
        """Call a remote procedure by name, without introspection.

        Args:
            procedure_name: Remote procedure name
            arg: Argument for the procedure

        Returns:
            The call result
        """
        return await self._pipeline.invoke(procedure_name, arg)

    async def introspect(self) -> Result:
        """Fetch the procedures the server advertises.

        Results are served from the introspection cache after the first
        success for this transport's uri.

        Returns:
            ``{"success": True, "code": "OK", ..., "procedures": names}`` or
            the introspection failure
        """
        uri = self.transport.uri
        try:
            names = await self.config.introspection_cache.resolve(self.transport)
        except IntrospectionFailure as failure:
            return normalize(
                self.config.never_throw, failure.code, failure.message, failure.error
            )
        return {
            "success": True,
            "code": "OK",
            "message": f"Introspected {uri}",
            "procedures": names,
        }

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.transport!r})"
