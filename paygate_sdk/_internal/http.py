"""Shared HTTP client configuration and user-agent strings."""

import json
import platform

import httpx

from paygate_sdk._version import __version__

CHARSET = "utf-8"
USER_AGENT = f"Paygate/v1 PythonBindings/{__version__}"
CLIENT_USER_AGENT_HEADER = "X-Paygate-Client-User-Agent"


def create_http_client(
    *,
    connect_timeout: float,
    read_timeout: float,
    keepalive_expiry: float | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Create configured HTTP client.

    Args:
        connect_timeout: Connect timeout in seconds.
        read_timeout: Read (and write/pool) timeout in seconds.
        keepalive_expiry: Idle lifetime of pooled connections; None for no limit.
        transport: Optional transport that resolves and sends requests instead
            of the default network transport.

    Returns:
        Configured httpx.Client instance.
    """
    return httpx.Client(
        timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
        limits=httpx.Limits(keepalive_expiry=keepalive_expiry),
        transport=transport,
        headers={"User-Agent": USER_AGENT, "Cache-Control": "no-cache"},
    )


def client_user_agent() -> str:
    """JSON blob of runtime facts sent for diagnostics."""
    return json.dumps(
        {
            "bindings_version": __version__,
            "lang": "python",
            "lang_version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "publisher": "paygate",
            "os_name": platform.system(),
            "os_version": platform.release(),
            "os_arch": platform.machine(),
            "httplib": f"httpx/{httpx.__version__}",
        }
    )

