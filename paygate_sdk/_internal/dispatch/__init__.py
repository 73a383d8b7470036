"""Request dispatch core for the Paygate API.

WARNING: This is a system-level module used by the public client.
Do not call directly from user code.
"""

from paygate_sdk._internal.dispatch.classifier import classify, classify_error
from paygate_sdk._internal.dispatch.client import RequestDispatcher, get_request_dispatcher
from paygate_sdk._internal.dispatch.dns import DnsCacheSetting, dns_cache_disabled, dns_cache_ttl
from paygate_sdk._internal.dispatch.models import (
    PaygateConfig,
    RequestKind,
    RequestMethod,
    RequestOptions,
    TransportRequest,
    TransportResponse,
)
from paygate_sdk._internal.dispatch.multipart import MultipartEncoder, new_boundary
from paygate_sdk._internal.dispatch.params import decode_query, encode_query, flatten_params
from paygate_sdk._internal.dispatch.transport import (
    HttpxTransport,
    SandboxTransport,
    Transport,
    select_transport,
)

__all__ = [
    "RequestDispatcher",
    "get_request_dispatcher",
    "PaygateConfig",
    "RequestOptions",
    "RequestMethod",
    "RequestKind",
    "TransportRequest",
    "TransportResponse",
    "Transport",
    "HttpxTransport",
    "SandboxTransport",
    "select_transport",
    "MultipartEncoder",
    "new_boundary",
    "flatten_params",
    "encode_query",
    "decode_query",
    "classify",
    "classify_error",
    "DnsCacheSetting",
    "dns_cache_disabled",
    "dns_cache_ttl",
]
