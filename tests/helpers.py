"""Test transports and result builders."""

from __future__ import annotations

import json
from typing import Any

from allserver import ClientTransport


class VoidTransport(ClientTransport):
    """Transport that talks to nothing.

    ``introspect`` and ``call`` return ``None`` unless replaced on the
    instance (usually with an ``AsyncMock``).
    """

    def __init__(self, uri: str = "void://localhost", **options: Any) -> None:
        super().__init__(uri)
        self.options = options

    async def introspect(self) -> dict[str, Any] | None:
        return None

    async def call(self, procedure_name: str, arg: Any) -> Any:
        return None


def introspection(*names: str) -> dict[str, Any]:
    """Build a successful introspection result advertising ``names``."""
    return {
        "success": True,
        "code": "OK",
        "message": "Ok",
        "procedures": json.dumps(dict.fromkeys(names, "function")),
    }


def called(code: str = "CALLED", **payload: Any) -> dict[str, Any]:
    """Build a successful call result."""
    return {"success": True, "code": code, "message": "A is good", **payload}
