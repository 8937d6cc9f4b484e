"""Core type definitions for the allserver client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from allserver.error import ConfigurationError

Result = dict[str, Any]


@dataclass
class CallContext:
    """Per-invocation record handed to transport middleware.

    ``result`` is ``None`` while ``before`` runs and holds the outcome of the
    call (or the failure that replaced it) when ``after`` runs.
    """

    procedure_name: str
    arg: Any = None
    result: Any = None


Middleware = Callable[[CallContext], "Any | Awaitable[Any]"]


class ClientTransport(ABC):
    """Base class for client transports.

    Subclasses perform the actual network exchange. ``introspect`` and
    ``call`` are required. ``before`` and ``after`` are optional middleware:
    they are ``None`` unless a subclass defines them as methods or they are
    assigned on an instance. Either hook may be sync or async.

    Example:
        class EchoTransport(ClientTransport):
            async def introspect(self):
                return {
                    "success": True,
                    "code": "OK",
                    "message": "Ok",
                    "procedures": '{"echo": "function"}',
                }

            async def call(self, procedure_name, arg):
                return {"success": True, "code": "ECHO", "message": "", "arg": arg}

            def before(self, ctx):
                ctx.arg = dict(ctx.arg or {}, trace=True)
    """

    before: Middleware | None = None
    after: Middleware | None = None

    def __init__(self, uri: str) -> None:
        """Initialize the transport.

        Args:
            uri: Connection string of the remote side; used as the
                introspection cache key

        Raises:
            ConfigurationError: If ``uri`` is not a non-empty string
        """
        if not isinstance(uri, str) or not uri:
            msg = "`uri` connection string is required"
            raise ConfigurationError(msg)
        self._uri = uri

    @property
    def uri(self) -> str:
        """Destination this transport talks to."""
        return self._uri

    @abstractmethod
    async def introspect(self) -> Result | None:
        """Ask the remote side which procedures it has.

        Returns:
            A result whose ``procedures`` entry is a JSON-encoded object
            keyed by procedure name
        """
        ...

    @abstractmethod
    async def call(self, procedure_name: str, arg: Any) -> Any:
        """Invoke a remote procedure.

        Args:
            procedure_name: Name of the remote procedure
            arg: Single argument passed to it

        Returns:
            The result reported by the remote side
        """
        ...

    async def close(self) -> None:
        """Release transport resources. Nothing to do by default."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.uri!r})"
