"""Paygate SDK for Python.

This SDK provides a client for the Paygate payments API.

Public API:
    PaygateClient - User-facing client
    PaygateConfig - Process-level configuration
    RequestOptions - Per-call credentials and pins

Internal (system-level, not for direct use):
    _internal.dispatch - Request dispatch core
"""

from paygate_sdk._internal.dispatch.models import PaygateConfig, RequestOptions
from paygate_sdk._version import __version__
from paygate_sdk.client import PaygateClient

__all__ = ["__version__", "PaygateClient", "PaygateConfig", "RequestOptions"]
