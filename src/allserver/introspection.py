"""Introspection handshake and the per-uri procedure cache.

Successful introspections are stored by transport ``uri`` and never fetched
again for the lifetime of the cache. Failures are not stored, so the next
resolution for that ``uri`` asks the transport again.

Concurrent first-time resolutions of the same ``uri`` are not coalesced:
each one calls ``introspect()`` and the first success fills the entry.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from allserver.error import ErrorCode, IntrospectionFailure

if TYPE_CHECKING:
    from allserver.types import ClientTransport

logger = logging.getLogger(__name__)


def parse_procedures(uri: str, encoded: Any) -> frozenset[str]:
    """Decode the ``procedures`` entry of an introspection result.

    Args:
        uri: Transport uri, used in failure messages
        encoded: JSON text of an object keyed by procedure name

    Returns:
        The advertised procedure names

    Raises:
        IntrospectionFailure: If the text is not JSON, or not a JSON object
    """
    message = f"Malformed introspection from {uri}"
    try:
        procedures = json.loads(encoded)
    except (TypeError, ValueError) as e:
        raise IntrospectionFailure(
            ErrorCode.MALFORMED_INTROSPECTION.value, message, e
        ) from e

    if not isinstance(procedures, dict):
        raise IntrospectionFailure(ErrorCode.MALFORMED_INTROSPECTION.value, message)

    return frozenset(procedures)


class IntrospectionCache:
    """Maps transport uris to the procedure names they advertise.

    One instance is shared process-wide by default (see
    ``allserver.client.DEFAULT_CONFIG``); pass another through
    ``ClientConfig.introspection_cache`` to isolate clients, or call
    :meth:`clear` between tests.
    """

    def __init__(self) -> None:
        self._entries: dict[str, frozenset[str]] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str) -> frozenset[str] | None:
        """Return the cached names for ``uri``, if any."""
        return self._entries.get(uri)

    def clear(self) -> None:
        """Forget every cached introspection."""
        self._entries.clear()

    async def resolve(self, transport: ClientTransport) -> frozenset[str]:
        """Return the procedure names advertised by ``transport``.

        Args:
            transport: Transport to introspect on a cache miss

        Returns:
            The advertised procedure names

        Raises:
            IntrospectionFailure: With code ``INTROSPECTION_FAILED`` if the
                transport raised or reported failure, or
                ``ALLSERVER_MALFORMED_INTROSPECTION`` if the listing could
                not be used
        """
        uri = transport.uri
        cached = self._entries.get(uri)
        if cached is not None:
            logger.debug("Introspection cache hit for %s", uri)
            return cached

        logger.debug("Introspecting %s", uri)
        message = f"Couldn't introspect {uri}"
        try:
            result = await transport.introspect()
        except Exception as e:
            logger.warning("Introspection of %s raised: %s", uri, e)
            raise IntrospectionFailure(
                ErrorCode.INTROSPECTION_FAILED.value, message, e
            ) from e

        if not isinstance(result, dict) or not result.get("success"):
            logger.warning("Introspection of %s was unsuccessful", uri)
            error = result.get("error") if isinstance(result, dict) else None
            raise IntrospectionFailure(
                ErrorCode.INTROSPECTION_FAILED.value,
                message,
                error if isinstance(error, BaseException) else None,
            )

        names = parse_procedures(uri, result.get("procedures"))
        self._entries[uri] = names
        logger.debug("Cached %d procedure(s) for %s", len(names), uri)
        return names


introspection_cache = IntrospectionCache()
