"""Dynamic binding of remote procedures onto a client."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from allserver.error import IntrospectionFailure, normalize

if TYPE_CHECKING:
    from allserver.introspection import IntrospectionCache
    from allserver.pipeline import CallPipeline

logger = logging.getLogger(__name__)

NameMapper = Callable[[str], Any]


def identity(name: str) -> str:
    """Default name mapper."""
    return name


class BoundProcedure:
    """A remote procedure bound to a client under a local name."""

    def __init__(self, name: str, pipeline: CallPipeline) -> None:
        self.name = name
        self._pipeline = pipeline

    async def __call__(self, arg: Any = None) -> Any:
        return await self._pipeline.invoke(self.name, arg)

    def __repr__(self) -> str:
        return f"BoundProcedure({self.name!r})"


class ProcedureResolver:
    """Turns unknown method names into bound procedures.

    Bindings are memoized: once a name is bound it is served from the table
    without consulting the introspection cache again. Names for which
    ``is_reserved`` returns true (explicit client methods) are never bound.
    """

    def __init__(
        self,
        pipeline: CallPipeline,
        cache: IntrospectionCache,
        *,
        auto_introspect: bool = True,
        name_mapper: NameMapper = identity,
        is_reserved: Callable[[str], bool] = lambda name: False,
    ) -> None:
        self.pipeline = pipeline
        self.cache = cache
        self.auto_introspect = auto_introspect
        self.name_mapper = name_mapper
        self._is_reserved = is_reserved
        self._bound: dict[str, BoundProcedure] = {}

    @property
    def bound(self) -> Mapping[str, BoundProcedure]:
        """Read-only view of the procedures bound so far."""
        return MappingProxyType(self._bound)

    def lookup(self, name: str) -> BoundProcedure | None:
        """Return the procedure bound under ``name``, if any."""
        return self._bound.get(name)

    def bind(self, names: frozenset[str]) -> list[str]:
        """Bind advertised remote names through the name mapper.

        Args:
            names: Remote procedure names from introspection

        Returns:
            Local names that were newly bound
        """
        added = []
        for remote_name in sorted(names):
            local_name = self.name_mapper(remote_name)
            if not local_name:
                continue
            if local_name in self._bound or self._is_reserved(local_name):
                continue
            self._bound[local_name] = BoundProcedure(local_name, self.pipeline)
            added.append(local_name)
        if added:
            logger.debug("Bound procedures: %s", ", ".join(added))
        return added

    async def resolve_and_call(self, name: str, arg: Any = None) -> Any:
        """Call ``name``, discovering and binding procedures first if needed.

        Args:
            name: Requested local procedure name
            arg: Argument for the call

        Returns:
            The call result, or the introspection failure when the listing
            was malformed
        """
        procedure = self._bound.get(name)
        if procedure is not None:
            return await procedure(arg)

        if self.auto_introspect:
            try:
                names = await self.cache.resolve(self.pipeline.transport)
            except IntrospectionFailure as failure:
                if not failure.recoverable:
                    return normalize(
                        self.pipeline.never_throw,
                        failure.code,
                        failure.message,
                        failure.error,
                    )
                logger.debug("Calling %s without introspection: %s", name, failure.message)
            else:
                self.bind(names)
                procedure = self._bound.get(name)
                if procedure is not None:
                    return await procedure(arg)

        return await self.pipeline.invoke(name, arg)
