"""allserver - transport-agnostic RPC client

Remote procedures are exposed as awaitable attributes of a :class:`Client`.
Which procedures exist is discovered through an introspection handshake,
and every outcome is reported as a uniform result dict.
"""

from allserver.client import DEFAULT_CONFIG, Client, ClientConfig
from allserver.error import (
    AllserverError,
    ConfigurationError,
    ErrorCode,
    IntrospectionFailure,
)
from allserver.introspection import IntrospectionCache, introspection_cache
from allserver.pipeline import CallPipeline
from allserver.registry import TransportRegistry, transports
from allserver.resolver import BoundProcedure, ProcedureResolver
from allserver.transports import HttpClientTransport
from allserver.types import CallContext, ClientTransport

__version__ = "0.1.0"

__all__ = [
    # Client
    "Client",
    "ClientConfig",
    "DEFAULT_CONFIG",
    # Transports
    "ClientTransport",
    "HttpClientTransport",
    "TransportRegistry",
    "transports",
    # Core
    "CallContext",
    "CallPipeline",
    "BoundProcedure",
    "ProcedureResolver",
    "IntrospectionCache",
    "introspection_cache",
    # Errors
    "AllserverError",
    "ConfigurationError",
    "ErrorCode",
    "IntrospectionFailure",
]
