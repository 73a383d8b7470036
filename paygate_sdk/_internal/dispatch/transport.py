"""Transports that execute a built request and return the raw response.

Two strategies implement `Transport`:

    HttpxTransport   - direct sockets through httpx (the normal case)
    SandboxTransport - the sandboxed platform's fetch service, used only when
                       sockets are unavailable and the platform marker is set

`select_transport()` picks one per call from a capability probe and config.
"""

import importlib
import socket
from collections.abc import Callable, Iterable, Iterator
from typing import Any, BinaryIO, Protocol

import httpx

from paygate_sdk._internal.dispatch.dns import DnsCacheSetting, dns_cache_ttl
from paygate_sdk._internal.dispatch.models import (
    PaygateConfig,
    RequestMethod,
    TransportRequest,
    TransportResponse,
)
from paygate_sdk._internal.http import CHARSET, create_http_client
from paygate_sdk.exceptions import PaygateAPIError, PaygateConnectionError

BODY_CHUNK_SIZE = 64 * 1024

SANDBOX_ERROR_MESSAGE = (
    "Sorry, an unknown error occurred while trying to use the sandbox runtime's "
    "fetch service. Please contact support@paygate.com for assistance."
)


class Transport(Protocol):
    """Sends one request and returns the response, whatever its status."""

    def execute(self, request: TransportRequest) -> TransportResponse: ...


# =============================================================================
# Direct Transport
# =============================================================================


class HttpxTransport:
    """Direct transport over httpx.

    A fresh client is opened for every call and always closed afterwards, so
    no connection state is shared between calls.
    """

    def __init__(
        self,
        config: PaygateConfig,
        *,
        dns_setting: DnsCacheSetting = dns_cache_ttl,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: SDK configuration (API base, custom URL handler).
            dns_setting: DNS cache TTL bounding connection keep-alive.
            transport: Explicit httpx transport; overrides config.url_handler.
        """
        self._config = config
        self._dns_setting = dns_setting
        self._transport = transport

    def execute(self, request: TransportRequest) -> TransportResponse:
        """Send the request.

        Raises:
            PaygateConnectionError: On any I/O failure, or if the custom URL
                handler cannot be loaded.
        """
        transport = self._transport
        if transport is None and self._config.url_handler:
            transport = load_url_handler(self._config.url_handler, self._config.api_base)

        try:
            with create_http_client(
                connect_timeout=request.connect_timeout,
                read_timeout=request.read_timeout,
                keepalive_expiry=self._dns_setting.keepalive_expiry(),
                transport=transport,
            ) as client:
                response = client.request(
                    request.method.value,
                    request.url,
                    headers=dict(request.headers),
                    content=_request_content(request.body),
                )
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            raise PaygateConnectionError(
                connection_error_message(self._config.api_base, e),
                api_base=self._config.api_base,
            ) from e

        return TransportResponse(
            status_code=response.status_code,
            body=response.content.decode(CHARSET, errors="replace"),
            headers=collect_headers(response.headers.multi_items()),
        )


def load_url_handler(dotted_path: str, api_base: str) -> httpx.BaseTransport:
    """Import and instantiate a custom URL handler.

    Args:
        dotted_path: "package.module:ClassName" or "package.module.ClassName".
        api_base: API base URL, reported if loading fails.

    Returns:
        The handler instance.

    Raises:
        PaygateConnectionError: If the class cannot be imported or
            instantiated, or is not an httpx.BaseTransport.
    """
    module_name, sep, class_name = dotted_path.partition(":")
    if not sep:
        module_name, _, class_name = dotted_path.rpartition(".")
    try:
        handler_class = getattr(importlib.import_module(module_name), class_name)
        handler = handler_class()
        if not isinstance(handler, httpx.BaseTransport):
            raise TypeError(f"{dotted_path} is not an httpx.BaseTransport")
    except Exception as e:
        raise PaygateConnectionError(
            connection_error_message(api_base, e), api_base=api_base
        ) from e
    return handler


def connection_error_message(api_base: str, error: BaseException) -> str:
    return (
        f"Error during API request to Paygate ({api_base}): {error} "
        "Please check your internet connection and try again."
    )


def collect_headers(items: Iterable[tuple[str, str]]) -> dict[str, list[str]]:
    """Group repeated header values under one name, preserving order."""
    headers: dict[str, list[str]] = {}
    for name, value in items:
        headers.setdefault(name, []).append(value)
    return headers


def _request_content(body: bytes | BinaryIO | None) -> bytes | Iterator[bytes] | None:
    if body is None or isinstance(body, bytes):
        return body
    return _iter_chunks(body)


def _iter_chunks(stream: BinaryIO) -> Iterator[bytes]:
    while chunk := stream.read(BODY_CHUNK_SIZE):
        yield chunk


# =============================================================================
# Sandboxed Platform Transport
# =============================================================================


class SandboxTransport:
    """Transport over the sandboxed platform's URL fetch service."""

    def __init__(
        self,
        config: PaygateConfig,
        fetch: Callable[..., Any] | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: SDK configuration (supplies the fetch deadline).
            fetch: The platform fetch function. Loaded from the platform SDK
                on first use when not given.
        """
        self._config = config
        self._fetch = fetch

    def execute(self, request: TransportRequest) -> TransportResponse:
        """Send the request through the platform fetch service.

        Raises:
            PaygateAPIError: On any failure loading or calling the service.
        """
        try:
            fetch = self._fetch or _load_platform_fetch()
            payload = None
            if request.method is RequestMethod.POST:
                payload = _read_body(request.body)
            result = fetch(
                request.url,
                payload=payload,
                method=request.method.value,
                headers=dict(request.headers),
                deadline=self._config.sandbox_deadline,
                validate_certificate=True,
            )
            return TransportResponse(
                status_code=int(result.status_code),
                body=result.content.decode(CHARSET, errors="replace"),
                headers=collect_headers((result.headers or {}).items()),
            )
        except Exception as e:
            raise PaygateAPIError(SANDBOX_ERROR_MESSAGE) from e


def _load_platform_fetch() -> Callable[..., Any]:
    from google.appengine.api import urlfetch  # type: ignore[import-not-found]

    return urlfetch.fetch


def _read_body(body: bytes | BinaryIO | None) -> bytes | None:
    if body is None or isinstance(body, bytes):
        return body
    return body.read()


# =============================================================================
# Selection
# =============================================================================


def direct_transport_available() -> bool:
    """Probe whether the runtime allows opening sockets."""
    try:
        probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError:
        return False
    probe.close()
    return True


def select_transport(
    config: PaygateConfig,
    *,
    dns_setting: DnsCacheSetting = dns_cache_ttl,
) -> Transport:
    """Choose the transport for one call.

    Raises:
        PaygateConnectionError: If neither strategy can be used.
    """
    if direct_transport_available():
        return HttpxTransport(config, dns_setting=dns_setting)
    if config.sandbox_runtime:
        return SandboxTransport(config)
    raise PaygateConnectionError(
        connection_error_message(
            config.api_base, OSError("sockets are unavailable in this runtime")
        ),
        api_base=config.api_base,
    )
