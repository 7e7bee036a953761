"""asyncio client for the Consul agent HTTP API with bounded concurrency."""

from consul_mux.client import ConsulClient
from consul_mux.config import ClientConfig
from consul_mux.errors import (
    ClientError,
    ConsulError,
    DecodeError,
    EncodingError,
    NotFound,
    ServerError,
    SpawnFailed,
    TransportFailure,
    UriError,
)
from consul_mux.multiplexer import Multiplexer
from consul_mux.transport import HttpxTransport, ServiceFn, service_fn
from consul_mux.transport_protocol import Transport
from consul_mux.types import KVEntry, Request, Response, ServiceNode

__all__ = [
    "ClientConfig",
    "ClientError",
    "ConsulClient",
    "ConsulError",
    "DecodeError",
    "EncodingError",
    "HttpxTransport",
    "KVEntry",
    "Multiplexer",
    "NotFound",
    "Request",
    "Response",
    "ServerError",
    "ServiceFn",
    "ServiceNode",
    "SpawnFailed",
    "Transport",
    "TransportFailure",
    "UriError",
    "service_fn",
]
