"""Error types and result normalization for the allserver client."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Stable codes placed in failure results."""

    INTROSPECTION_FAILED = "INTROSPECTION_FAILED"
    MALFORMED_INTROSPECTION = "ALLSERVER_MALFORMED_INTROSPECTION"
    PROCEDURE_UNREACHABLE = "ALLSERVER_PROCEDURE_UNREACHABLE"
    CLIENT_BEFORE_ERROR = "ALLSERVER_CLIENT_BEFORE_ERROR"
    CLIENT_AFTER_ERROR = "ALLSERVER_CLIENT_AFTER_ERROR"

    def __str__(self) -> str:
        return self.value


class ConfigurationError(ValueError):
    """Raised when a client or transport is constructed with bad settings.

    These are programmer errors and are raised regardless of ``never_throw``.
    """


@dataclass(eq=False)
class AllserverError(Exception):
    """Failure with a code, a message and an optional underlying exception."""

    code: str
    message: str
    error: BaseException | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_result(self) -> dict[str, Any]:
        """Convert to a failure result dict."""
        return failure(self.code, self.message, self.error)


class IntrospectionFailure(AllserverError):
    """Introspection of a transport did not produce a usable procedure list."""

    @property
    def recoverable(self) -> bool:
        """Whether the requested call may still be attempted."""
        return self.code == ErrorCode.INTROSPECTION_FAILED.value


def failure(
    code: ErrorCode | str, message: str, error: BaseException | None = None
) -> dict[str, Any]:
    """Build a failure result.

    The ``error`` key is only present when an underlying exception exists.
    """
    result: dict[str, Any] = {"success": False, "code": str(code), "message": message}
    if error is not None:
        result["error"] = error
    return result


def normalize(
    never_throw: bool,
    code: ErrorCode | str,
    message: str,
    error: BaseException | None = None,
) -> dict[str, Any]:
    """Turn a failure into a result, or raise it when ``never_throw`` is off.

    With ``never_throw`` disabled the underlying exception propagates
    unchanged. Failures without one raise :class:`AllserverError`.
    """
    if never_throw:
        return failure(code, message, error)
    if error is not None:
        raise error
    raise AllserverError(str(code), message)


def middleware_failure(
    never_throw: bool,
    error: BaseException,
    default_code: ErrorCode,
    stage: str,
    procedure_name: str,
) -> dict[str, Any]:
    """Normalize an exception raised by a ``before``/``after`` hook.

    An exception that carries its own ``code`` keeps that code and its own
    message; anything else gets ``default_code`` and a templated message.
    """
    own_code = getattr(error, "code", None)
    if own_code:
        message = getattr(error, "message", None) or str(error)
        return normalize(never_throw, str(own_code), message, error)
    message = f"The '{stage}' middleware threw while calling: {procedure_name}"
    return normalize(never_throw, default_code, message, error)
