"""The before -> call -> after sequence executed for every invocation."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from allserver.error import ErrorCode, middleware_failure, normalize
from allserver.types import CallContext

if TYPE_CHECKING:
    from allserver.types import ClientTransport, Middleware

logger = logging.getLogger(__name__)


async def _run_hook(hook: Middleware, ctx: CallContext) -> Any:
    """Run a middleware hook, awaiting it if it returned an awaitable."""
    result = hook(ctx)
    if inspect.isawaitable(result):
        return await result
    return result


class CallPipeline:
    """Executes calls through a transport, applying its middleware.

    Every failure is handed to the error normalizer, so with ``never_throw``
    enabled :meth:`invoke` always returns a result, and with it disabled the
    original exception propagates.

    A ``before`` hook returning anything other than ``None`` replaces the
    result and skips the transport call. ``after`` always runs when defined,
    even after a ``before`` failure, and may replace the result likewise.
    """

    def __init__(self, transport: ClientTransport, never_throw: bool = True) -> None:
        self.transport = transport
        self.never_throw = never_throw

    async def invoke(self, procedure_name: str, arg: Any = None) -> Any:
        """Invoke a remote procedure.

        Args:
            procedure_name: Name passed to the transport
            arg: Argument passed to the transport

        Returns:
            The transport's result, a middleware override, or a failure result

        Raises:
            Exception: Whatever the transport or middleware raised, if
                ``never_throw`` is disabled
        """
        transport = self.transport
        ctx = CallContext(procedure_name=procedure_name, arg=arg)
        result = None

        if transport.before is not None:
            try:
                result = await _run_hook(transport.before, ctx)
            except Exception as e:
                logger.warning("'before' middleware failed for %s: %s", procedure_name, e)
                result = middleware_failure(
                    self.never_throw, e, ErrorCode.CLIENT_BEFORE_ERROR, "before", procedure_name
                )
            else:
                if result is not None:
                    logger.debug("'before' middleware overrode result of %s", procedure_name)

        if result is None:
            result = await self._call_transport(ctx)

        ctx.result = result

        if transport.after is not None:
            try:
                override = await _run_hook(transport.after, ctx)
            except Exception as e:
                logger.warning("'after' middleware failed for %s: %s", procedure_name, e)
                result = middleware_failure(
                    self.never_throw, e, ErrorCode.CLIENT_AFTER_ERROR, "after", procedure_name
                )
            else:
                if override is not None:
                    logger.debug("'after' middleware overrode result of %s", procedure_name)
                    result = override

        return result

    async def _call_transport(self, ctx: CallContext) -> Any:
        """Send the call, normalizing a transport exception."""
        logger.debug("Calling %s on %s", ctx.procedure_name, self.transport.uri)
        try:
            return await self.transport.call(ctx.procedure_name, ctx.arg)
        except Exception as e:
            logger.warning("Remote procedure %s unreachable: %s", ctx.procedure_name, e)
            return normalize(
                self.never_throw,
                ErrorCode.PROCEDURE_UNREACHABLE,
                f"Couldn't reach remote procedure: {ctx.procedure_name}",
                e,
            )
