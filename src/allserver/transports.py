"""HTTP client transport.

Procedures are called by POSTing the JSON-encoded argument to
``<uri>/<procedure>``. The JSON response body is the call result.
Introspection is the ``introspect`` procedure.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Self

import aiohttp

from allserver.error import AllserverError
from allserver.types import ClientTransport, Result

logger = logging.getLogger(__name__)


class HttpClientTransport(ClientTransport):
    """HTTP transport implementation.

    The ``aiohttp.ClientSession`` is opened lazily on the first request, or
    explicitly by using the transport as an async context manager.
    """

    def __init__(
        self,
        uri: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the HTTP transport.

        Args:
            uri: Base URL of the server (e.g., "http://localhost:8080/rpc")
            timeout: Request timeout in seconds
            headers: Extra headers sent with every request
        """
        super().__init__(uri)
        self.timeout = timeout
        self.headers = dict(headers or {})
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        self._open()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    def _open(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def url_for(self, procedure_name: str) -> str:
        """Return the endpoint URL of a procedure."""
        return f"{self.uri.rstrip('/')}/{procedure_name}"

    async def introspect(self) -> Result | None:
        """Call the server's ``introspect`` procedure."""
        return await self.call("introspect", None)

    async def call(self, procedure_name: str, arg: Any) -> Any:
        """POST the argument to the procedure endpoint.

        Args:
            procedure_name: Remote procedure name
            arg: JSON-serializable argument

        Returns:
            The decoded JSON response

        Raises:
            AllserverError: If the response is not JSON; the code is
                ``ALLSERVER_CLIENT_HTTP_<status>``
            aiohttp.ClientError: If the request fails
        """
        session = self._open()
        url = self.url_for(procedure_name)
        logger.debug("POST %s", url)

        async with session.post(
            url,
            data=json.dumps(arg),
            headers={"Content-Type": "application/json", **self.headers},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            text = await response.text()

        try:
            return json.loads(text)
        except ValueError as e:
            msg = f"Unexpected response from {url}: {response.status} {response.reason}"
            raise AllserverError(f"ALLSERVER_CLIENT_HTTP_{response.status}", msg, e) from e

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
